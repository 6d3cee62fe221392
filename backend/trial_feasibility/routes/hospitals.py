"""Hospital matching and match-invitation routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..schemas.hospital_schema import (
    HospitalListResponse,
    InvitationListResponse,
    InvitationRequest,
    InvitationResponse,
)
from ..services.auth_dependency import CurrentUser, get_current_user
from ..services.hospital_matching import generate_hospital_matches
from ..services.invitation_service import create_invitation, list_invitations
from ..services.kv_store import KVStore, get_kv_store

router = APIRouter(
    tags=["Hospitals"],
)


@router.get(
    "/hospitals",
    response_model=HospitalListResponse,
    summary="Match research sites",
    response_description="Sites ranked by match score",
)
def get_hospitals(
    therapeutic_area: Optional[str] = Query(None, alias="therapeuticArea"),
    indication: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
) -> HospitalListResponse:
    return HospitalListResponse(
        hospitals=generate_hospital_matches(therapeutic_area, indication)
    )


@router.post(
    "/match-invitation",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a site to run a trial",
)
def send_match_invitation(
    payload: InvitationRequest,
    store: KVStore = Depends(get_kv_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvitationResponse:
    try:
        invitation_id = create_invitation(
            store,
            user_id=current_user.id,
            hospital_id=payload.hospital_id,
            trial_id=payload.trial_id,
            trial_title=payload.trial_title,
        )
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send match invitation: {exc}",
        ) from exc

    return InvitationResponse(
        success=True,
        invitation_id=invitation_id,
        message="Match invitation sent successfully",
    )


@router.get(
    "/invitations",
    response_model=InvitationListResponse,
    summary="List match invitations",
)
def get_invitations(
    store: KVStore = Depends(get_kv_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvitationListResponse:
    return InvitationListResponse(invitations=list_invitations(store, current_user.id))
