from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class ProviderError(str, Enum):
    UNREACHABLE = "unreachable"
    UNAUTHORIZED = "unauthorized"


class CheckStatus(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


@dataclass(frozen=True)
class StartResult:
    session_ref: Optional[str] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CheckResult:
    status: Optional[CheckStatus] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class VerificationProvider(Protocol):
    """Issues and validates one-time codes for a phone number.

    Transport and credential failures come back as ``ProviderError`` on the
    result; implementations do not raise for them.
    """

    async def start(self, phone: str) -> StartResult:
        ...

    async def check(self, phone: str, code: str) -> CheckResult:
        ...
