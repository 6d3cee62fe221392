"""Trial lifecycle over the key-value store.

A trial is written once in ``analyzing`` status when submitted, scored,
then overwritten in place with ``completed`` status and its analysis.
There is no retry or resume of partial states.

Keys: ``trial_{user_id}_{epoch_millis}``.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..agents.feasibility_panel.generator import TextGenerationClient
from ..constants import TRIAL_KEY_PREFIX, TRIAL_STATUS_ANALYZING, TRIAL_STATUS_COMPLETED
from ..schemas.trial_schema import FeasibilityReport, TrialProposal
from .kv_store import KVStore
from .report_strategies import compute_report

logger = logging.getLogger(__name__)


class TrialNotFoundError(LookupError):
    """The trial does not exist, or is not visible to this user."""


class TrialAccessError(PermissionError):
    """The trial exists but belongs to another user."""


def user_trial_prefix(user_id: str) -> str:
    return f"{TRIAL_KEY_PREFIX}{user_id}_"


def new_trial_id(store: KVStore, user_id: str) -> str:
    """Millisecond key, bumped forward if that millisecond is already taken."""
    millis = int(time.time() * 1000)
    while store.get(f"{user_trial_prefix(user_id)}{millis}") is not None:
        millis += 1
    return f"{user_trial_prefix(user_id)}{millis}"


async def submit_trial(
    store: KVStore,
    *,
    user_id: str,
    proposal: TrialProposal,
    model_client: Optional[TextGenerationClient] = None,
) -> tuple[str, FeasibilityReport]:
    """Persist a proposal, score it and persist the completed trial.

    Returns ``(trial_id, report)``.
    """
    trial_id = new_trial_id(store, user_id)
    record: Dict[str, Any] = {
        **proposal.to_record(),
        "trialId": trial_id,
        "userId": user_id,
        "createdAt": datetime.now(timezone.utc).isoformat(),
        "status": TRIAL_STATUS_ANALYZING,
    }
    store.set(trial_id, record)
    print(f"➡️  [TRIALS] Stored {trial_id} (status={TRIAL_STATUS_ANALYZING})")

    outcome = await compute_report(proposal, model_client)
    logger.info("Trial %s scored via %s", trial_id, outcome.source)

    store.set(
        trial_id,
        {**record, "status": TRIAL_STATUS_COMPLETED, "analysis": outcome.report.to_wire()},
    )
    print(
        f"✅ [TRIALS] Completed {trial_id} "
        f"(probability={outcome.report.outcome_predictor.success_probability}, "
        f"verdict={outcome.report.overall_recommendation.verdict})"
    )
    return trial_id, outcome.report


def list_trials(store: KVStore, user_id: str) -> List[Dict[str, Any]]:
    return store.get_by_prefix(user_trial_prefix(user_id))


def summarize_trials(store: KVStore, user_id: str) -> List[Dict[str, Any]]:
    """Id, title, status and timestamp of each stored trial."""
    return [
        {
            "trialId": t.get("trialId"),
            "studyTitle": t.get("studyTitle"),
            "status": t.get("status"),
            "createdAt": t.get("createdAt"),
        }
        for t in list_trials(store, user_id)
    ]


def get_trial(store: KVStore, user_id: str, trial_id: str) -> Dict[str, Any]:
    """Return the trial. Someone else's trial is reported as not found."""
    trial = store.get(trial_id)
    if trial is None or trial.get("userId") != user_id:
        raise TrialNotFoundError(trial_id)
    return trial


def delete_trial(store: KVStore, user_id: str, trial_id: str) -> None:
    trial = store.get(trial_id)
    if trial is None:
        raise TrialNotFoundError(trial_id)
    if trial.get("userId") != user_id:
        raise TrialAccessError(trial_id)
    store.delete(trial_id)
    logger.info("Deleted trial %s", trial_id)
