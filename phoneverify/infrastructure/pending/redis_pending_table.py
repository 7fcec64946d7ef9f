import json
import math
from datetime import datetime
from typing import Optional

import redis

from ...application.ports.pending_repo import PendingVerification, PendingVerificationTable

# Keys outlive expires_at slightly so an expired entry can still be reported as such
GRACE_SECONDS = 60


def _encode(entry: PendingVerification) -> str:
    return json.dumps({
        "user_id": entry.user_id,
        "phone": entry.phone,
        "session_ref": entry.session_ref,
        "created_at": entry.created_at.isoformat(),
        "expires_at": entry.expires_at.isoformat(),
        "attempts": entry.attempts,
    })


def _decode(raw) -> PendingVerification:
    data = json.loads(raw)
    return PendingVerification(
        user_id=data["user_id"],
        phone=data["phone"],
        session_ref=data.get("session_ref"),
        created_at=datetime.fromisoformat(data["created_at"]),
        expires_at=datetime.fromisoformat(data["expires_at"]),
        attempts=int(data.get("attempts") or 0),
    )


class RedisPendingVerificationTable(PendingVerificationTable):
    """Pending verifications shared across processes; Redis key TTL does the sweeping."""

    def __init__(self, url: Optional[str] = None, prefix: str = "pending:", client=None) -> None:
        self.client = client or redis.Redis.from_url(url)
        self.prefix = prefix

    def _key(self, user_id: str) -> str:
        return f"{self.prefix}{user_id}"

    def put(self, user_id: str, entry: PendingVerification) -> None:
        ttl = (entry.expires_at - entry.created_at).total_seconds() + GRACE_SECONDS
        self.client.set(self._key(user_id), _encode(entry), ex=max(1, math.ceil(ttl)))

    def get(self, user_id: str) -> Optional[PendingVerification]:
        raw = self.client.get(self._key(user_id))
        if raw is None:
            return None
        return _decode(raw)

    def remove(self, user_id: str) -> None:
        self.client.delete(self._key(user_id))

    def sweep(self, now: datetime) -> int:
        return 0
