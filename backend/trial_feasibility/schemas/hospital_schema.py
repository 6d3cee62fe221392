from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatientPopulation(_CamelModel):
    total: str
    demographics: str
    relevant_conditions: str


class TrialCapacity(_CamelModel):
    current: int
    completed: int
    capacity: str


class HospitalMatch(_CamelModel):
    """A research site that could host the trial."""

    id: str
    name: str
    location: str
    type: str
    interested: bool = True
    specialties: List[str]
    patient_population: PatientPopulation
    equipment: Dict[str, str] = Field(default_factory=dict)
    staff_capacity: Dict[str, str] = Field(default_factory=dict)
    trials: TrialCapacity
    match_score: int = Field(..., ge=0, le=100)
    notes: str = ""


class HospitalListResponse(_CamelModel):
    hospitals: List[HospitalMatch] = Field(default_factory=list)


class InvitationRequest(_CamelModel):
    """Body of ``POST /match-invitation``."""

    hospital_id: str = Field(..., min_length=1, max_length=64)
    trial_id: str = Field(..., min_length=1, max_length=255)
    trial_title: Optional[str] = Field(None, max_length=500)

    @field_validator("hospital_id", "trial_id")
    @classmethod
    def strip_ids(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Identifier must not be blank")
        return stripped


class InvitationResponse(_CamelModel):
    success: bool
    invitation_id: str
    message: str


class InvitationListResponse(_CamelModel):
    invitations: List[Dict[str, Any]] = Field(default_factory=list)
