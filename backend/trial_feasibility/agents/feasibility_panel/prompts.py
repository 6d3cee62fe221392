"""Prompt templates for the Feasibility Panel (external-model path).

System + User prompt separation. Output is always a single JSON object
matching the ``FeasibilityReport`` wire shape. JSON enforcement is handled
by response_format in the centralized openai_client.
"""

from __future__ import annotations

import json
from typing import Any, Dict

SYSTEM_PROMPT = """You are an expert clinical trial feasibility assessment panel.

ROLE:
- You combine the views of a medical professional, a financial advisor,
  and a clinical trial administrator.
- You judge whether the proposed trial can realistically be executed.

OUTPUT FORMAT:
Respond only with valid JSON. No markdown, no explanation, no prose."""


_REPORT_SCHEMA = """{
  "medicalFeasibility": {
    "score": <integer 0-100>,
    "assessment": "<detailed assessment>",
    "concerns": ["<concern 1>", "<concern 2>"],
    "recommendations": ["<recommendation 1>", "<recommendation 2>"]
  },
  "financialFeasibility": {
    "score": <integer 0-100>,
    "assessment": "<detailed assessment>",
    "estimatedCost": "<cost estimate in USD, e.g. $600,000 - $1,200,000>",
    "concerns": ["<concern 1>", "<concern 2>"],
    "recommendations": ["<recommendation 1>", "<recommendation 2>"]
  },
  "administrativeFeasibility": {
    "score": <integer 0-100>,
    "assessment": "<detailed assessment>",
    "concerns": ["<concern 1>", "<concern 2>"],
    "recommendations": ["<recommendation 1>", "<recommendation 2>"]
  },
  "outcomePredictor": {
    "successProbability": <integer 0-100>,
    "prediction": "<detailed prediction>",
    "keyFactors": ["<factor 1>", "<factor 2>"],
    "risks": ["<risk 1>", "<risk 2>"]
  },
  "overallRecommendation": {
    "verdict": "<proceed | revise | abandon>",
    "summary": "<executive summary>",
    "nextSteps": ["<step 1>", "<step 2>"]
  }
}"""


def build_user_prompt(proposal: Dict[str, Any]) -> str:
    """Embed the full proposal and the required output structure."""
    return f"""Analyze this clinical trial proposal and provide a detailed feasibility assessment.

=== CLINICAL TRIAL DETAILS ===
{json.dumps(proposal, indent=2, ensure_ascii=False, default=str)}

=== REQUIRED OUTPUT ===
Return ONLY this exact JSON structure. No other text.
{_REPORT_SCHEMA}"""
