# Schemas package
from .trial_schema import FeasibilityReport, TrialProposal, TrialSubmitResponse
from .hospital_schema import HospitalMatch, InvitationRequest

__all__ = [
    "TrialProposal",
    "FeasibilityReport",
    "TrialSubmitResponse",
    "HospitalMatch",
    "InvitationRequest",
]
