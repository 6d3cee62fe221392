"""Feasibility Panel generator: OpenAI-backed feasibility report.

Uses an injected text-generation client (normally ``OpenAIChatClient``).
The reply is validated against the ``FeasibilityReport`` schema: scores in
0-100, a known verdict, every section present. Anything else is treated as
a failed call. The model's verdict is kept as given, so ``abandon`` can
only come from here.

Returns None on ANY failure: the caller falls back to the heuristic.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from ...schemas.trial_schema import FeasibilityReport, TrialProposal
from .prompts import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)

_PANEL_MAX_TOKENS = 2000


class TextGenerationClient(Protocol):
    """Anything that can turn chat messages into a parsed JSON object."""

    async def complete_json(
        self,
        *,
        messages: List[Dict[str, str]],
        max_completion_tokens: int = 0,
    ) -> Optional[Dict[str, Any]]:
        ...


async def generate_panel_report(
    proposal: TrialProposal,
    client: TextGenerationClient,
) -> Optional[FeasibilityReport]:
    """Ask the external model for a full report.

    Parameters
    ----------
    proposal : TrialProposal
        The submitted proposal; sent in full, passthrough fields included.
    client : TextGenerationClient
        Injected model client.

    Returns
    -------
    FeasibilityReport or None
        None when the call fails or the reply does not fit the schema.
    """
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(proposal.to_record())},
    ]

    try:
        result = await client.complete_json(
            messages=messages,
            max_completion_tokens=_PANEL_MAX_TOKENS,
        )
    except Exception as exc:
        logger.warning("Feasibility panel call raised: %s", exc)
        return None

    if result is None:
        print("⚠️  [PANEL] Model returned nothing usable")
        return None

    try:
        report = FeasibilityReport.model_validate(result)
    except (ValidationError, ValueError, OverflowError) as exc:
        logger.warning("Feasibility panel reply failed validation: %s", exc)
        return None

    print(
        f"✅ [PANEL] Model report accepted "
        f"(probability={report.outcome_predictor.success_probability}, "
        f"verdict={report.overall_recommendation.verdict})"
    )
    return report
