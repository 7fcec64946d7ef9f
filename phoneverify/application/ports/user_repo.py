from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UserRecord:
    id: str
    phone: Optional[str] = None
    verified: bool = False
    verified_at: Optional[datetime] = None
    profile: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


# Profile fields a user gets on first contact with the bot
DEFAULT_PROFILE: Dict[str, Any] = {
    "username": "",
    "first_name": "",
    "balance": 0,
    "total_kg": 0,
    "referrals_count": 0,
    "rank": "Newbie",
    "banned": False,
}


class UserStore(Protocol):
    def get(self, user_id: str) -> Optional[UserRecord]:
        ...

    def upsert(self, record: UserRecord) -> UserRecord:
        ...

    def list(self) -> List[UserRecord]:
        ...

    def update(self, user_id: str, mutate: Callable[[UserRecord], None]) -> UserRecord:
        """Atomically read, mutate and write back one record, creating it if absent."""
        ...

    def ensure_user(self, user_id: str, **profile: Any) -> UserRecord:
        ...
