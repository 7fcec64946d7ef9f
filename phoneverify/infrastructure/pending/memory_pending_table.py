import logging
from datetime import datetime
from typing import Dict, Optional

from ...application.ports.pending_repo import PendingVerification, PendingVerificationTable

logger = logging.getLogger(__name__)


class InMemoryPendingVerificationTable(PendingVerificationTable):
    def __init__(self) -> None:
        self._store: Dict[str, PendingVerification] = {}

    def put(self, user_id: str, entry: PendingVerification) -> None:
        self._store[user_id] = entry

    def get(self, user_id: str) -> Optional[PendingVerification]:
        return self._store.get(user_id)

    def remove(self, user_id: str) -> None:
        self._store.pop(user_id, None)

    def sweep(self, now: datetime) -> int:
        expired = [uid for uid, entry in self._store.items() if entry.is_expired(now)]
        for uid in expired:
            del self._store[uid]
        if expired:
            logger.info(f"Swept {len(expired)} expired pending verifications")
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)
