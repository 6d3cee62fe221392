from .scoring_engine import compute_scores, extract_features
from .report_strategies import compute_report
from .trial_service import submit_trial
from .hospital_matching import generate_hospital_matches

__all__ = [
    "extract_features",
    "compute_scores",
    "compute_report",
    "submit_trial",
    "generate_hospital_matches",
]
