from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class PendingVerification:
    user_id: str
    phone: str
    session_ref: Optional[str]
    created_at: datetime
    expires_at: datetime
    attempts: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class PendingVerificationTable(Protocol):
    def put(self, user_id: str, entry: PendingVerification) -> None:
        ...

    def get(self, user_id: str) -> Optional[PendingVerification]:
        ...

    def remove(self, user_id: str) -> None:
        ...

    def sweep(self, now: datetime) -> int:
        ...
