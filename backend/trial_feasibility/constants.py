"""Centralized constants shared across the scoring engine, services and routes.

This module is the SINGLE SOURCE OF TRUTH for proposal defaults, scoring
thresholds, cost rates and the verdict / status taxonomies. Reused by:
  - Scoring Engine (heuristic path)
  - Feasibility panel generator (external-model path)
  - Trial and invitation services (key prefixes)
  - Frontend (the report shape is indexed by fixed paths)
"""

from __future__ import annotations

# ── Proposal defaults ───────────────────────────────────────────────────
# Applied when a field is missing, empty or unparsable.

DEFAULT_STUDY_SIZE: int = 100
DEFAULT_STUDY_PHASE: str = "Phase 2"

# A narrative field only counts as "present" when it is longer than this.
BACKGROUND_MIN_LENGTH: int = 100
RESEARCH_QUESTION_MIN_LENGTH: int = 50

# ── Score bounds ────────────────────────────────────────────────────────

SCORE_MIN: int = 0
SCORE_MAX: int = 100

# ── Sub-score weights (additive bonuses) ────────────────────────────────

MEDICAL_BASE: int = 55
MEDICAL_QUESTION_BONUS: tuple[int, int] = (15, 5)       # (present, absent)
MEDICAL_BACKGROUND_BONUS: tuple[int, int] = (20, 10)
MEDICAL_PHASE_BONUS: tuple[int, int] = (10, 5)          # phase 2/3 vs other

FINANCIAL_BASE: int = 60
FINANCIAL_SIZE_LIMIT: int = 500
FINANCIAL_SIZE_BONUS: tuple[int, int] = (20, 10)        # size < limit vs other
FINANCIAL_PHASE_BONUS: tuple[int, int] = (10, 5)        # phase 1/2 vs other

ADMIN_BASE: int = 60
ADMIN_SIZE_LIMIT: int = 300
ADMIN_SIZE_BONUS: tuple[int, int] = (20, 10)
ADMIN_EMPLOYER_BONUS: int = 10

# ── Aggregation ─────────────────────────────────────────────────────────

PROCEED_THRESHOLD: int = 75

# ── Cost model (USD per participant) ────────────────────────────────────
# Small trials carry a higher per-patient cost (fixed costs amortize worse).

SMALL_TRIAL_SIZE: int = 100
SMALL_TRIAL_COST_PER_PATIENT: tuple[int, int] = (8_000, 15_000)
STANDARD_COST_PER_PATIENT: tuple[int, int] = (6_000, 12_000)

# ── Narrative thresholds ────────────────────────────────────────────────
# Only select template wording; never feed back into the scores.

UNDERPOWERED_SIZE: int = 50
MULTI_SITE_SIZE: int = 500
RECRUITMENT_RISK_SIZE: int = 300
CRO_SIZE: int = 200
STRONG_MEDICAL_SCORE: int = 70
FEASIBLE_FINANCIAL_SCORE: int = 60
STRONG_ADMIN_SCORE: int = 70

# ── Taxonomies ──────────────────────────────────────────────────────────

VERDICT_PROCEED: str = "proceed"
VERDICT_REVISE: str = "revise"
VERDICT_ABANDON: str = "abandon"  # only ever produced by the external model
VERDICTS: list[str] = [VERDICT_PROCEED, VERDICT_REVISE, VERDICT_ABANDON]

TRIAL_STATUS_ANALYZING: str = "analyzing"
TRIAL_STATUS_COMPLETED: str = "completed"

INVITATION_STATUS_PENDING: str = "pending"

REPORT_SOURCE_MODEL: str = "external_model"
REPORT_SOURCE_HEURISTIC: str = "heuristic"

# ── Key-value store prefixes ────────────────────────────────────────────

TRIAL_KEY_PREFIX: str = "trial_"
INVITATION_KEY_PREFIX: str = "invitation_"
