"""Pydantic schemas for trial proposals and feasibility reports.

The ``FeasibilityReport`` shape is LOCKED: the frontend indexes into fixed
camelCase paths such as ``analysis.overallRecommendation.verdict`` and
``analysis.outcomePredictor.successProbability``. Do NOT rename fields.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..constants import SCORE_MAX, SCORE_MIN


# ===================================================================== #
#  Input                                                                  #
# ===================================================================== #

class TrialProposal(BaseModel):
    """A clinical-trial proposal as submitted by a medical professional.

    Only five fields are scored. Everything else the caller sends is kept
    as passthrough data (``extra="allow"``) and persisted with the trial.
    Scored fields accept any JSON scalar and are coerced to strings so a
    malformed value never rejects the submission.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    study_title: Optional[str] = Field(None, alias="studyTitle")
    study_size: Optional[str] = Field(
        None,
        alias="studySize",
        description="Number of participants; parsed as a leading integer.",
    )
    study_phase: Optional[str] = Field(None, alias="studyPhase", description='e.g. "Phase 2"')
    background_rationale: Optional[str] = Field(None, alias="backgroundRationale")
    research_question: Optional[str] = Field(None, alias="researchQuestion")
    place_of_employment: Optional[str] = Field(None, alias="placeOfEmployment")

    @field_validator(
        "study_title",
        "study_size",
        "study_phase",
        "background_rationale",
        "research_question",
        "place_of_employment",
        mode="before",
    )
    @classmethod
    def coerce_to_text(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        return str(v)

    def to_record(self) -> Dict[str, Any]:
        """Return the submitted fields (scored and passthrough) in wire form."""
        record = self.model_dump(by_alias=True, exclude_unset=True)
        record.update(self.model_extra or {})
        return record


# ===================================================================== #
#  Output                                                                 #
# ===================================================================== #

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class _ReportModel(BaseModel):
    """Base for report sections: immutable, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class _ScoredSection(_ReportModel):
    score: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX)
    assessment: str
    concerns: List[str]
    recommendations: List[str]

    @field_validator("score", mode="before")
    @classmethod
    def round_numeric_score(cls, v: Any) -> Any:
        if isinstance(v, float):
            return _round_half_up(v)
        return v


class MedicalFeasibility(_ScoredSection):
    """Scientific soundness of the proposal."""


class FinancialFeasibility(_ScoredSection):
    """Budget outlook, with a formatted USD cost range."""

    estimated_cost: str


class AdministrativeFeasibility(_ScoredSection):
    """Site, IRB and institutional readiness."""


class OutcomePredictor(_ReportModel):
    success_probability: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX)
    prediction: str
    key_factors: List[str]
    risks: List[str]

    @field_validator("success_probability", mode="before")
    @classmethod
    def round_probability(cls, v: Any) -> Any:
        if isinstance(v, float):
            return _round_half_up(v)
        return v


class OverallRecommendation(_ReportModel):
    verdict: Literal["proceed", "revise", "abandon"]
    summary: str
    next_steps: List[str]

    @field_validator("verdict", mode="before")
    @classmethod
    def normalize_verdict(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class FeasibilityReport(_ReportModel):
    """Complete feasibility assessment for one trial proposal."""

    medical_feasibility: MedicalFeasibility
    financial_feasibility: FinancialFeasibility
    administrative_feasibility: AdministrativeFeasibility
    outcome_predictor: OutcomePredictor
    overall_recommendation: OverallRecommendation

    def to_wire(self) -> Dict[str, Any]:
        """Plain JSON-ready dict in the camelCase wire shape."""
        return self.model_dump(by_alias=True)


# ===================================================================== #
#  Trial API responses                                                    #
# ===================================================================== #

class _CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrialSubmitResponse(_CamelResponse):
    """Returned after a proposal has been stored and scored."""

    trial_id: str
    analysis: FeasibilityReport


class TrialListResponse(_CamelResponse):
    trials: List[Dict[str, Any]] = Field(default_factory=list)


class TrialDetailResponse(_CamelResponse):
    trial: Dict[str, Any]


class TrialDeleteResponse(_CamelResponse):
    success: bool
    message: str


class TrialSummary(_CamelResponse):
    trial_id: Optional[str] = None
    study_title: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None


class TrialDebugResponse(_CamelResponse):
    """Lightweight listing used to inspect what is stored for a user."""

    user_id: str
    trial_count: int
    trials: List[TrialSummary] = Field(default_factory=list)
