"""Centralized OpenAI chat-completions client.

Every external-model call goes through ``OpenAIChatClient.complete_json``.
This ensures:
  - Model, temperature, timeout and token limits are read from env.
  - A bounded request timeout (default 30s), so a hung upstream never
    stalls trial submission.
  - The first ``{...}`` block of the reply is extracted and parsed.
  - Any failure (HTTP error, timeout, empty or unparsable reply) returns
    None instead of raising, so callers can fall back.

The client is built per request by ``get_text_generation_client`` and
injected into the scoring path; nothing is constructed at import time.
"""

from __future__ import annotations

import json
import logging
import os
import re
import time
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants: all read from environment with safe defaults
# ---------------------------------------------------------------------------
_OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def get_openai_key() -> Optional[str]:
    """Read OPENAI_API_KEY from the environment. None when unset or blank."""
    key = os.getenv("OPENAI_API_KEY", "").strip()
    return key or None


def get_openai_model() -> str:
    """Read OPENAI_MODEL from the environment (default: gpt-4)."""
    return (os.getenv("OPENAI_MODEL") or "").strip() or "gpt-4"


def _get_temperature() -> float:
    return _env_float("OPENAI_TEMPERATURE", 0.7)


def _get_timeout() -> float:
    return _env_float("OPENAI_REQUEST_TIMEOUT", 30.0)


def _get_default_max_tokens() -> int:
    return _env_int("OPENAI_MAX_COMPLETION_TOKENS", 2000)


def _get_max_retries() -> int:
    return max(0, _env_int("OPENAI_MAX_RETRIES", 0))


# ---------------------------------------------------------------------------
# JSON sanitizer: extracts valid JSON from LLM output
# ---------------------------------------------------------------------------
def sanitize_json(raw: str) -> str:
    """Extract a JSON object from raw LLM output.

    Handles:
      - Markdown fences (```json ... ```)
      - Leading/trailing whitespace and BOM
      - Prose before/after JSON
      - Trailing commas before } or ], only when the object does not parse as is

    Raises ValueError if no JSON object is found.
    """
    text = raw.strip().lstrip("\ufeff")

    # Everything before the first '{' and after the last '}' is prose or fences
    brace_idx = text.find("{")
    if brace_idx == -1:
        raise ValueError("LLM did not return a JSON object, no '{' found")
    rbrace_idx = text.rfind("}")
    if rbrace_idx < brace_idx:
        raise ValueError("LLM did not return a JSON object, no closing '}' found")
    text = text[brace_idx : rbrace_idx + 1]

    try:
        json.loads(text)
    except ValueError:
        return re.sub(r",\s*([}\]])", r"\1", text)
    return text


def build_payload(
    *,
    model: str,
    messages: List[Dict[str, str]],
    max_completion_tokens: int,
    temperature: float,
) -> Dict[str, Any]:
    """Build an OpenAI chat completions payload.

    Sends model, messages, max_tokens and temperature. No ``response_format``:
    base gpt-4 has no JSON mode, so ``sanitize_json`` extracts the object.
    """
    return {
        "model": model,
        "messages": messages,
        "max_tokens": max_completion_tokens,
        "temperature": temperature,
    }


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class OpenAIChatClient:
    """Async chat-completions client bound to one credential.

    ``transport`` lets tests swap the network for ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
        max_retries: Optional[int] = None,
        api_url: str = _OPENAI_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("OpenAIChatClient requires an API key")
        self._api_key = api_key
        self.model = model or get_openai_model()
        self.timeout = timeout if timeout is not None else _get_timeout()
        self.temperature = temperature if temperature is not None else _get_temperature()
        self.max_retries = max_retries if max_retries is not None else _get_max_retries()
        self._api_url = api_url
        self._transport = transport

    def __repr__(self) -> str:
        return f"OpenAIChatClient(model={self.model!r}, timeout={self.timeout})"

    async def complete_json(
        self,
        *,
        messages: List[Dict[str, str]],
        max_completion_tokens: int = 0,
    ) -> Optional[Dict[str, Any]]:
        """Send *messages* and return the parsed JSON object, or None on failure."""
        if max_completion_tokens <= 0:
            max_completion_tokens = _get_default_max_tokens()

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        payload = build_payload(
            model=self.model,
            messages=messages,
            max_completion_tokens=max_completion_tokens,
            temperature=self.temperature,
        )

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            t0 = time.time()
            try:
                print(f"🧠 [OPENAI] Calling {self.model} (attempt {attempt + 1}/{attempts})")
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.post(self._api_url, headers=headers, json=payload)
                duration = time.time() - t0
                print(f"📦 [OPENAI] HTTP {response.status_code} ({duration:.1f}s)")

                if not response.is_success:
                    logger.warning("OpenAI error response %s: %s", response.status_code, response.text[:400])
                    continue

                data = response.json()

                usage = data.get("usage")
                if usage:
                    logger.info(
                        "OpenAI tokens used: prompt=%s, completion=%s, total=%s",
                        usage.get("prompt_tokens", "?"),
                        usage.get("completion_tokens", "?"),
                        usage.get("total_tokens", "?"),
                    )

                raw_content = (data["choices"][0]["message"]["content"] or "").strip()
                if not raw_content:
                    logger.warning("OpenAI returned an empty message (attempt %d)", attempt + 1)
                    continue

                parsed = json.loads(sanitize_json(raw_content))
                if not isinstance(parsed, dict):
                    logger.warning("OpenAI reply is not a JSON object")
                    continue
                print("🧠 [OPENAI] Success")
                return parsed

            except ValueError as exc:
                # json.JSONDecodeError is a ValueError subclass
                print(f"❌ [OPENAI] JSON parse failed: {exc}")
                continue

            except httpx.TimeoutException:
                duration = time.time() - t0
                print(f"❌ [OPENAI] Timeout ({duration:.1f}s)")
                continue

            except Exception as exc:
                logger.warning("OpenAI call failed: %s", exc)
                return None

        return None


def get_text_generation_client() -> Optional[OpenAIChatClient]:
    """FastAPI dependency: a client when a credential is configured, else None.

    A missing key is a normal condition that routes scoring to the heuristic.
    """
    key = get_openai_key()
    if key is None:
        return None
    return OpenAIChatClient(key)
