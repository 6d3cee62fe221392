"""Match invitations from a trial owner to a research site.

Keys: ``invitation_{user_id}_{hospital_id}_{epoch_millis}``.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..constants import INVITATION_KEY_PREFIX, INVITATION_STATUS_PENDING
from .kv_store import KVStore


def create_invitation(
    store: KVStore,
    *,
    user_id: str,
    hospital_id: str,
    trial_id: str,
    trial_title: Optional[str] = None,
) -> str:
    """Persist a pending invitation and return its id."""
    invitation_id = f"{INVITATION_KEY_PREFIX}{user_id}_{hospital_id}_{int(time.time() * 1000)}"
    store.set(
        invitation_id,
        {
            "invitationId": invitation_id,
            "userId": user_id,
            "hospitalId": hospital_id,
            "trialId": trial_id,
            "trialTitle": trial_title,
            "status": INVITATION_STATUS_PENDING,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        },
    )
    print(f"📨 [INVITATIONS] {invitation_id} stored for trial {trial_id}")
    return invitation_id


def list_invitations(store: KVStore, user_id: str) -> List[Dict[str, Any]]:
    return store.get_by_prefix(f"{INVITATION_KEY_PREFIX}{user_id}_")
