"""Deterministic Scoring Engine.

Converts a trial proposal into three 0-100 feasibility sub-scores, an
aggregate success probability, a verdict and an estimated cost range using
fixed additive rules.

Rules
-----
- NO API calls
- NO DB writes
- NO LLMs
- Feature extraction is total: missing or malformed input falls back to
  defaults, never raises
- Pure deterministic math
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from ..constants import (
    ADMIN_BASE,
    ADMIN_EMPLOYER_BONUS,
    ADMIN_SIZE_BONUS,
    ADMIN_SIZE_LIMIT,
    BACKGROUND_MIN_LENGTH,
    DEFAULT_STUDY_PHASE,
    DEFAULT_STUDY_SIZE,
    FINANCIAL_BASE,
    FINANCIAL_PHASE_BONUS,
    FINANCIAL_SIZE_BONUS,
    FINANCIAL_SIZE_LIMIT,
    MEDICAL_BACKGROUND_BONUS,
    MEDICAL_BASE,
    MEDICAL_PHASE_BONUS,
    MEDICAL_QUESTION_BONUS,
    PROCEED_THRESHOLD,
    RESEARCH_QUESTION_MIN_LENGTH,
    SCORE_MAX,
    SCORE_MIN,
    SMALL_TRIAL_COST_PER_PATIENT,
    SMALL_TRIAL_SIZE,
    STANDARD_COST_PER_PATIENT,
    VERDICT_PROCEED,
    VERDICT_REVISE,
)
from ..schemas.trial_schema import TrialProposal

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class ProposalFeatures:
    """The only inputs the heuristic looks at."""

    size: int
    phase: str
    has_background: bool
    has_question: bool
    has_employer: bool
    employer: Optional[str] = None

    def phase_mentions(self, *digits: str) -> bool:
        return any(d in self.phase for d in digits)


@dataclass(frozen=True)
class FeasibilityScores:
    medical: int
    financial: int
    administrative: int
    success_probability: int
    verdict: str


def _clamp(value: float, lo: float = SCORE_MIN, hi: float = SCORE_MAX) -> float:
    """Clamp *value* to [lo, hi]."""
    return max(lo, min(hi, value))


def _pick(flag: bool, bonus: tuple[int, int]) -> int:
    return bonus[0] if flag else bonus[1]


def parse_study_size(raw: Any) -> int:
    """Parse a participant count the lenient way form input arrives.

    Leading digits win (``"120 patients"`` -> 120). Anything without a
    leading integer, and a parsed zero, falls back to the default.
    """
    if raw is None or isinstance(raw, bool):
        return DEFAULT_STUDY_SIZE
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            return DEFAULT_STUDY_SIZE
        return int(raw) or DEFAULT_STUDY_SIZE
    match = _LEADING_INT.match(str(raw))
    if not match:
        return DEFAULT_STUDY_SIZE
    return int(match.group(1)) or DEFAULT_STUDY_SIZE


def extract_features(proposal: TrialProposal) -> ProposalFeatures:
    """Derive scoring features from a proposal. Never fails."""
    employer = proposal.place_of_employment
    return ProposalFeatures(
        size=parse_study_size(proposal.study_size),
        phase=proposal.study_phase or DEFAULT_STUDY_PHASE,
        has_background=len(proposal.background_rationale or "") > BACKGROUND_MIN_LENGTH,
        has_question=len(proposal.research_question or "") > RESEARCH_QUESTION_MIN_LENGTH,
        has_employer=bool(employer),
        employer=(employer or "").strip() or None,
    )


def success_probability(medical: int, financial: int, administrative: int) -> int:
    """Mean of the three sub-scores, rounded half-up."""
    mean = (medical + financial + administrative) / 3
    return int(_clamp(math.floor(mean + 0.5)))


def verdict_for(probability: int) -> str:
    return VERDICT_PROCEED if probability >= PROCEED_THRESHOLD else VERDICT_REVISE


def compute_scores(features: ProposalFeatures) -> FeasibilityScores:
    """Compute the three sub-scores, the success probability and verdict.

    Parameters
    ----------
    features : ProposalFeatures
        Output of :func:`extract_features`.

    Returns
    -------
    FeasibilityScores
        Integer scores, all clamped 0-100.
    """

    # 1. Medical: narrative completeness, mid-stage phases
    medical = _clamp(
        MEDICAL_BASE
        + _pick(features.has_question, MEDICAL_QUESTION_BONUS)
        + _pick(features.has_background, MEDICAL_BACKGROUND_BONUS)
        + _pick(features.phase_mentions("2", "3"), MEDICAL_PHASE_BONUS)
    )

    # 2. Financial: smaller trials, early phases
    financial = _clamp(
        FINANCIAL_BASE
        + _pick(features.size < FINANCIAL_SIZE_LIMIT, FINANCIAL_SIZE_BONUS)
        + _pick(features.phase_mentions("1", "2"), FINANCIAL_PHASE_BONUS)
    )

    # 3. Administrative: site count, institutional affiliation
    administrative = _clamp(
        ADMIN_BASE
        + _pick(features.size < ADMIN_SIZE_LIMIT, ADMIN_SIZE_BONUS)
        + (ADMIN_EMPLOYER_BONUS if features.has_employer else 0)
    )

    probability = success_probability(int(medical), int(financial), int(administrative))

    return FeasibilityScores(
        medical=int(medical),
        financial=int(financial),
        administrative=int(administrative),
        success_probability=probability,
        verdict=verdict_for(probability),
    )


def estimate_cost_range(size: int) -> tuple[int, int]:
    """Linear per-participant cost, higher per head for small trials."""
    low, high = (
        SMALL_TRIAL_COST_PER_PATIENT if size < SMALL_TRIAL_SIZE else STANDARD_COST_PER_PATIENT
    )
    return size * low, size * high


def format_cost_range(low: int, high: int) -> str:
    """``(600000, 1200000)`` -> ``"$600,000 - $1,200,000"``."""
    return f"${low:,} - ${high:,}"
