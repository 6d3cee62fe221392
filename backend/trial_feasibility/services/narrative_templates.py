"""Rule-based narrative for the heuristic feasibility report.

Every sentence is picked from a fixed template bank by a simple predicate on
the extracted features or the computed scores. Wording can change freely;
the predicates that choose between templates are part of the contract and
live in ``constants.py``.
"""

from __future__ import annotations

from typing import Dict

from ..constants import (
    CRO_SIZE,
    FEASIBLE_FINANCIAL_SCORE,
    MULTI_SITE_SIZE,
    PROCEED_THRESHOLD,
    RECRUITMENT_RISK_SIZE,
    STRONG_ADMIN_SCORE,
    STRONG_MEDICAL_SCORE,
    UNDERPOWERED_SIZE,
)
from ..schemas.trial_schema import (
    AdministrativeFeasibility,
    FeasibilityReport,
    FinancialFeasibility,
    MedicalFeasibility,
    OutcomePredictor,
    OverallRecommendation,
)
from .scoring_engine import (
    FeasibilityScores,
    ProposalFeatures,
    estimate_cost_range,
    format_cost_range,
)

# ── Template bank ───────────────────────────────────────────────────────
# Keyed by the predicate outcome (True / False).

MEDICAL_ASSESSMENT: Dict[bool, str] = {
    True: (
        "The proposed {phase} trial with {size} participants shows strong medical "
        "feasibility. The research question and background rationale are well-articulated."
    ),
    False: (
        "The proposed {phase} trial with {size} participants shows moderate medical "
        "feasibility. The research question and background rationale are adequately described."
    ),
}

SAMPLE_POWER_CONCERN: Dict[bool, str] = {
    True: "Sample size may be insufficient for statistical power",
    False: "Sample size appears adequate for the study phase",
}

BACKGROUND_CONCERN: Dict[bool, str] = {
    True: "Strong scientific foundation provided",
    False: "Background rationale could be more comprehensive",
}

MEDICAL_RECOMMENDATIONS = (
    "Engage with a biostatistician to validate sample size calculations",
    "Develop detailed protocol with clear inclusion/exclusion criteria",
    "Establish data safety monitoring board (DSMB) for ongoing oversight",
)

FINANCIAL_ASSESSMENT: Dict[bool, str] = {
    True: (
        "For a {phase} trial with {size} participants, financial planning is feasible. "
        "Budget estimates should account for recruitment, monitoring, and data management costs."
    ),
    False: (
        "For a {phase} trial with {size} participants, financial planning is challenging "
        "but manageable. Budget estimates should account for recruitment, monitoring, and "
        "data management costs."
    ),
}

FUNDING_CONCERN: Dict[bool, str] = {
    True: "Large sample size will require substantial funding",
    False: "Moderate sample size supports manageable budget",
}

RECRUITMENT_COST_CONCERN = "Patient recruitment and retention costs should be carefully estimated"

GRANT_RECOMMENDATION: Dict[bool, str] = {
    True: "Consider SBIR/STTR grants for early-phase trials",
    False: "Pursue collaborative funding models",
}

ADMIN_ASSESSMENT: Dict[bool, str] = {
    True: (
        "Administrative feasibility is strong for this {phase} trial. With affiliation at "
        "{employer}, site infrastructure and regulatory pathways are well-positioned."
    ),
    False: (
        "Administrative feasibility is moderate for this {phase} trial. With affiliation at "
        "{employer}, site infrastructure and regulatory pathways can be established."
    ),
}

SITE_CONCERN: Dict[bool, str] = {
    True: "Large sample size will require multiple sites and complex coordination",
    False: "Manageable sample size for single or few sites",
}

IRB_TIMELINE_CONCERN = "IRB approval process typically requires 2-4 months"

AFFILIATION_CONCERN: Dict[bool, str] = {
    True: "Institutional support appears available",
    False: "Institutional affiliation needs to be confirmed",
}

PROJECT_MANAGEMENT_RECOMMENDATION: Dict[bool, str] = {
    True: "Consider engaging a CRO for multi-site coordination",
    False: "Build internal project management capacity",
}

QUESTION_FACTOR: Dict[bool, str] = {
    True: "Well-articulated research question and hypothesis",
    False: "Research question needs refinement",
}

BACKGROUND_FACTOR: Dict[bool, str] = {
    True: "Strong scientific rationale and background",
    False: "Background rationale could be strengthened",
}

EMPLOYER_FACTOR: Dict[bool, str] = {
    True: "Institutional support confirmed",
    False: "Institutional affiliation to be established",
}

RECRUITMENT_RISK: Dict[bool, str] = {
    True: "Large sample size may face recruitment challenges",
    False: "Sample size manageable but requires realistic timelines",
}

COMMON_RISKS = (
    "IRB approval and regulatory clearance timelines",
    "Patient recruitment and retention strategies needed",
    "Budget contingencies for unexpected costs",
)

THRESHOLD_NOTE: Dict[bool, str] = {
    True: "This score meets the minimum {threshold}% threshold for proceeding with medical council submission.",
    False: (
        "This score is below the {threshold}% threshold; consider addressing the "
        "recommendations before formal submission."
    ),
}

SUMMARY: Dict[bool, str] = {
    True: (
        "This {phase} clinical trial proposal meets the {threshold}% feasibility threshold and "
        "shows strong potential for successful execution. With proper planning and institutional "
        "support, it is ready to proceed toward formal regulatory submission."
    ),
    False: (
        "This {phase} clinical trial proposal requires refinement to meet the {threshold}% "
        "feasibility threshold required for medical council submission. Address the "
        "recommendations below to strengthen the proposal before resubmitting for assessment."
    ),
}

FIRST_STEP: Dict[bool, str] = {
    True: "Proceed with detailed protocol development",
    False: "Revise proposal addressing identified concerns",
}

REGULATORY_STEP: Dict[bool, str] = {
    True: "Schedule pre-IND meeting with FDA or equivalent regulatory body",
    False: "Strengthen background rationale and research methodology",
}


# ── Section builders ────────────────────────────────────────────────────

def _medical(features: ProposalFeatures, scores: FeasibilityScores) -> MedicalFeasibility:
    return MedicalFeasibility(
        score=scores.medical,
        assessment=MEDICAL_ASSESSMENT[scores.medical > STRONG_MEDICAL_SCORE].format(
            phase=features.phase, size=features.size
        ),
        concerns=[
            SAMPLE_POWER_CONCERN[features.size < UNDERPOWERED_SIZE],
            BACKGROUND_CONCERN[features.has_background],
        ],
        recommendations=list(MEDICAL_RECOMMENDATIONS),
    )


def _financial(features: ProposalFeatures, scores: FeasibilityScores) -> FinancialFeasibility:
    low, high = estimate_cost_range(features.size)
    return FinancialFeasibility(
        score=scores.financial,
        assessment=FINANCIAL_ASSESSMENT[scores.financial > FEASIBLE_FINANCIAL_SCORE].format(
            phase=features.phase, size=features.size
        ),
        estimated_cost=format_cost_range(low, high),
        concerns=[
            FUNDING_CONCERN[features.size > MULTI_SITE_SIZE],
            RECRUITMENT_COST_CONCERN,
        ],
        recommendations=[
            "Develop detailed line-item budget with 25% contingency",
            "Explore NIH, industry, and foundation funding sources",
            GRANT_RECOMMENDATION[features.phase_mentions("1", "2")],
        ],
    )


def _administrative(
    features: ProposalFeatures, scores: FeasibilityScores
) -> AdministrativeFeasibility:
    return AdministrativeFeasibility(
        score=scores.administrative,
        assessment=ADMIN_ASSESSMENT[scores.administrative > STRONG_ADMIN_SCORE].format(
            phase=features.phase,
            employer=features.employer or "the specified institution",
        ),
        concerns=[
            SITE_CONCERN[features.size > MULTI_SITE_SIZE],
            IRB_TIMELINE_CONCERN,
            AFFILIATION_CONCERN[features.has_employer],
        ],
        recommendations=[
            "Begin IRB application process early with complete protocol",
            "Establish relationships with clinical sites and principal investigators",
            "Develop standard operating procedures (SOPs) for data collection",
            PROJECT_MANAGEMENT_RECOMMENDATION[features.size > CRO_SIZE],
        ],
    )


def _outcome(features: ProposalFeatures, scores: FeasibilityScores) -> OutcomePredictor:
    meets = scores.success_probability >= PROCEED_THRESHOLD
    prediction = (
        "Based on a combined medical, financial, and administrative review, this trial has a "
        f"feasibility score of {scores.success_probability} out of 100. "
        + THRESHOLD_NOTE[meets].format(threshold=PROCEED_THRESHOLD)
    )
    return OutcomePredictor(
        success_probability=scores.success_probability,
        prediction=prediction,
        key_factors=[
            QUESTION_FACTOR[features.has_question],
            BACKGROUND_FACTOR[features.has_background],
            f"{features.phase} is appropriate for the research objectives",
            EMPLOYER_FACTOR[features.has_employer],
        ],
        risks=[RECRUITMENT_RISK[features.size > RECRUITMENT_RISK_SIZE], *COMMON_RISKS],
    )


def _overall(features: ProposalFeatures, scores: FeasibilityScores) -> OverallRecommendation:
    meets = scores.success_probability >= PROCEED_THRESHOLD
    return OverallRecommendation(
        verdict=scores.verdict,
        summary=SUMMARY[meets].format(phase=features.phase, threshold=PROCEED_THRESHOLD),
        next_steps=[
            FIRST_STEP[meets],
            "Engage biostatistician for power analysis and sample size validation",
            "Develop comprehensive budget with institutional finance office",
            "Prepare complete IRB application package",
            "Identify and pre-qualify clinical research sites",
            REGULATORY_STEP[meets],
            "Establish patient recruitment strategy and timelines",
        ],
    )


def build_report(features: ProposalFeatures, scores: FeasibilityScores) -> FeasibilityReport:
    """Assemble the full heuristic report from features and scores.  No LLM."""
    return FeasibilityReport(
        medical_feasibility=_medical(features, scores),
        financial_feasibility=_financial(features, scores),
        administrative_feasibility=_administrative(features, scores),
        outcome_predictor=_outcome(features, scores),
        overall_recommendation=_overall(features, scores),
    )
