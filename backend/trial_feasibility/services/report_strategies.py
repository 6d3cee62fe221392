"""Feasibility report strategies.

Defines the ``ReportStrategy`` abstract interface and its two
implementations. ``compute_report`` is the single entry point: it selects
a strategy from the injected model client and collapses to the heuristic
on any failure, so it always returns a well-formed report.

Strategies
----------
- ``ExternalModelReportStrategy``: delegates to the feasibility panel.
- ``HeuristicReportStrategy``: deterministic rules, never fails.

Selection
---------
A configured client (credential present) selects the external model;
``None`` selects the heuristic directly.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Optional

from ..agents.feasibility_panel.generator import TextGenerationClient, generate_panel_report
from ..constants import REPORT_SOURCE_HEURISTIC, REPORT_SOURCE_MODEL
from ..schemas.trial_schema import FeasibilityReport, TrialProposal
from .narrative_templates import build_report
from .scoring_engine import compute_scores, extract_features

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportOutcome:
    """A report tagged with the strategy that actually produced it."""

    report: FeasibilityReport
    source: str


# ===================================================================== #
#  Abstract interface                                                     #
# ===================================================================== #

class ReportStrategy(abc.ABC):
    """Interface every report source must implement.

    ``generate`` returns a report, or ``None`` when this source could not
    produce one. Only the heuristic is guaranteed to succeed.
    """

    source: str = ""

    @abc.abstractmethod
    async def generate(self, proposal: TrialProposal) -> Optional[FeasibilityReport]:
        ...


# ===================================================================== #
#  Heuristic                                                              #
# ===================================================================== #

class HeuristicReportStrategy(ReportStrategy):
    source = REPORT_SOURCE_HEURISTIC

    def build(self, proposal: TrialProposal) -> FeasibilityReport:
        features = extract_features(proposal)
        scores = compute_scores(features)
        print(
            f"📊 [SCORING] medical={scores.medical} financial={scores.financial} "
            f"admin={scores.administrative} → {scores.success_probability} ({scores.verdict})"
        )
        return build_report(features, scores)

    async def generate(self, proposal: TrialProposal) -> Optional[FeasibilityReport]:
        return self.build(proposal)


# ===================================================================== #
#  External model                                                         #
# ===================================================================== #

class ExternalModelReportStrategy(ReportStrategy):
    source = REPORT_SOURCE_MODEL

    def __init__(self, client: TextGenerationClient) -> None:
        self._client = client

    async def generate(self, proposal: TrialProposal) -> Optional[FeasibilityReport]:
        return await generate_panel_report(proposal, self._client)


def select_strategy(model_client: Optional[TextGenerationClient]) -> ReportStrategy:
    """Pick the strategy for this call from credential presence."""
    if model_client is None:
        return HeuristicReportStrategy()
    return ExternalModelReportStrategy(model_client)


# ===================================================================== #
#  Public API                                                             #
# ===================================================================== #

def build_heuristic_report(proposal: TrialProposal) -> FeasibilityReport:
    """Synchronous heuristic report. Deterministic for identical input."""
    return HeuristicReportStrategy().build(proposal)


async def compute_report(
    proposal: TrialProposal,
    model_client: Optional[TextGenerationClient] = None,
) -> ReportOutcome:
    """Produce a feasibility report. Never raises.

    Falls back to the heuristic when no client is configured, or when the
    model call fails, times out or returns something unusable.
    """
    strategy = select_strategy(model_client)

    if strategy.source != REPORT_SOURCE_HEURISTIC:
        try:
            report = await strategy.generate(proposal)
        except Exception as exc:
            logger.warning("%s strategy raised: %s, using heuristic", strategy.source, exc)
            report = None
        if report is not None:
            return ReportOutcome(report=report, source=strategy.source)
        print(f"⚠️  [SCORING] {strategy.source} unavailable, using heuristic")
    else:
        print("⚠️  [SCORING] No model client configured, using heuristic")

    return ReportOutcome(report=build_heuristic_report(proposal), source=REPORT_SOURCE_HEURISTIC)
