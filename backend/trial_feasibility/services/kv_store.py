"""Key-value persistence over a single SQLAlchemy table.

The store is generic: ``get``, ``set``, ``get_by_prefix`` and
``delete`` on JSON values. No range queries, no schema enforcement; each
write commits on its own.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.kv_entry import KVEntry

logger = logging.getLogger(__name__)


class KVStore:
    """JSON key-value store bound to one database session."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._db.query(KVEntry).filter(KVEntry.key == key).first()
        if entry is None:
            return None
        return json.loads(entry.value)

    def set(self, key: str, value: Dict[str, Any]) -> None:
        """Insert or overwrite *key*."""
        payload = json.dumps(value, default=str)
        entry = self._db.query(KVEntry).filter(KVEntry.key == key).first()
        if entry is None:
            self._db.add(KVEntry(key=key, value=payload))
        else:
            entry.value = payload
        self._db.commit()

    def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        """All values whose key starts with *prefix* (literal match), ordered by key."""
        entries = (
            self._db.query(KVEntry)
            .filter(KVEntry.key.startswith(prefix, autoescape=True))
            .order_by(KVEntry.key)
            .all()
        )
        return [json.loads(e.value) for e in entries]

    def delete(self, key: str) -> bool:
        """Remove *key*. Returns False when it did not exist."""
        deleted = self._db.query(KVEntry).filter(KVEntry.key == key).delete()
        self._db.commit()
        return bool(deleted)


def get_kv_store(db: Session = Depends(get_db)) -> KVStore:
    """FastAPI dependency wiring the store to the request session."""
    return KVStore(db)
