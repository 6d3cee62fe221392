"""Trial routes: submit proposals and manage stored trials.

Endpoints:
  POST   /trials             : Store, score and return a trial proposal
  GET    /trials             : List the current user's trials
  GET    /trials/debug       : Id/title/status listing of stored trials
  GET    /trials/{trial_id}  : Get one trial
  DELETE /trials/{trial_id}  : Delete one trial

The routes are thin: all business logic lives in service functions.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ..agents.feasibility_panel.generator import TextGenerationClient
from ..schemas.trial_schema import (
    TrialDebugResponse,
    TrialDeleteResponse,
    TrialDetailResponse,
    TrialListResponse,
    TrialProposal,
    TrialSubmitResponse,
)
from ..services.auth_dependency import CurrentUser, get_current_user
from ..services.kv_store import KVStore, get_kv_store
from ..services.openai_client import get_text_generation_client
from ..services.trial_service import (
    TrialAccessError,
    TrialNotFoundError,
    delete_trial,
    get_trial,
    list_trials,
    submit_trial,
    summarize_trials,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/trials",
    tags=["Trials"],
)


@router.post(
    "",
    response_model=TrialSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a Trial Proposal",
    response_description="The new trial ID and its feasibility analysis",
)
async def create_trial(
    payload: TrialProposal,
    store: KVStore = Depends(get_kv_store),
    model_client: Optional[TextGenerationClient] = Depends(get_text_generation_client),
    current_user: CurrentUser = Depends(get_current_user),
) -> TrialSubmitResponse:
    """Persist the proposal, score it and return the analysis.

    Scoring itself never fails; only storage errors surface here.
    """
    print(f"➡️  [TRIALS] Submission START for user {current_user.id}")
    try:
        trial_id, report = await submit_trial(
            store,
            user_id=current_user.id,
            proposal=payload,
            model_client=model_client,
        )
    except Exception as exc:
        logger.exception("Trial submission failed for user %s", current_user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to submit trial: {exc}",
        ) from exc

    return TrialSubmitResponse(trial_id=trial_id, analysis=report)


@router.get(
    "",
    response_model=TrialListResponse,
    summary="List trials",
    response_description="All trials submitted by the current user",
)
def get_trials(
    store: KVStore = Depends(get_kv_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> TrialListResponse:
    return TrialListResponse(trials=list_trials(store, current_user.id))


@router.get(
    "/debug",
    response_model=TrialDebugResponse,
    summary="Inspect stored trials",
    response_description="Id, title, status and creation time per trial",
)
def debug_trials(
    store: KVStore = Depends(get_kv_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> TrialDebugResponse:
    summaries = summarize_trials(store, current_user.id)
    logger.debug("User %s has %d stored trials", current_user.id, len(summaries))
    return TrialDebugResponse(
        user_id=current_user.id,
        trial_count=len(summaries),
        trials=summaries,
    )


@router.get(
    "/{trial_id}",
    response_model=TrialDetailResponse,
    summary="Get trial by ID",
    response_description="A single stored trial, with its analysis once completed",
)
def get_trial_detail(
    trial_id: str,
    store: KVStore = Depends(get_kv_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> TrialDetailResponse:
    try:
        trial = get_trial(store, current_user.id, trial_id)
    except TrialNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Trial {trial_id} not found",
        )
    return TrialDetailResponse(trial=trial)


@router.delete(
    "/{trial_id}",
    response_model=TrialDeleteResponse,
    summary="Delete trial",
)
def remove_trial(
    trial_id: str,
    store: KVStore = Depends(get_kv_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> TrialDeleteResponse:
    try:
        delete_trial(store, current_user.id, trial_id)
    except TrialNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Trial {trial_id} not found",
        )
    except TrialAccessError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Trial does not belong to this user",
        )

    print(f"🗑️  [TRIALS] Deleted {trial_id}")
    return TrialDeleteResponse(success=True, message="Trial deleted successfully")
