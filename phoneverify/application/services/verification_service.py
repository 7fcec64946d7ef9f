"""Phone verification state machine.

A user is ``UNVERIFIED`` until a code is requested, ``AWAITING_CODE`` while a
pending verification exists, and ``VERIFIED`` for good once a code is
approved. Every event for one user runs under that user's lock; provider calls
are time-bounded so a slow backend cannot wedge the lock.
"""
import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ...utils import is_valid_phone, normalize_phone
from ..ports.audit_logger import AuditLogger
from ..ports.otp_provider import CheckResult, CheckStatus, ProviderError, StartResult, VerificationProvider
from ..ports.pending_repo import PendingVerification, PendingVerificationTable
from ..ports.user_repo import UserRecord, UserStore, utcnow
from .keyed_lock import KeyedLock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VerificationState(str, Enum):
    UNVERIFIED = "unverified"
    AWAITING_CODE = "awaiting_code"
    VERIFIED = "verified"


class VerificationErrorKind(str, Enum):
    INVALID_PHONE_FORMAT = "invalid_phone_format"
    PROVIDER_UNREACHABLE = "provider_unreachable"
    PROVIDER_UNAUTHORIZED = "provider_unauthorized"
    SESSION_EXPIRED = "session_expired"
    INVALID_CODE = "invalid_code"
    TOO_MANY_ATTEMPTS = "too_many_attempts"


_PROVIDER_ERRORS = {
    ProviderError.UNREACHABLE: VerificationErrorKind.PROVIDER_UNREACHABLE,
    ProviderError.UNAUTHORIZED: VerificationErrorKind.PROVIDER_UNAUTHORIZED,
}


@dataclass(frozen=True)
class VerificationOutcome:
    user_id: str
    state: VerificationState
    error: Optional[VerificationErrorKind] = None
    phone: Optional[str] = None
    attempts: int = 0
    already_verified: bool = False

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class VerificationOrchestrator:
    user_store: UserStore
    pending: PendingVerificationTable
    provider: VerificationProvider
    audit: Optional[AuditLogger] = None
    ttl: timedelta = timedelta(minutes=10)
    max_attempts: int = 5
    provider_timeout: float = 15.0
    default_country_code: Optional[str] = None
    clock: Callable[[], datetime] = utcnow
    locks: KeyedLock = field(default_factory=KeyedLock)

    def _audit(self, action: str, phone: Optional[str], user_id: str, success: bool = True, **details: Any) -> None:
        if self.audit is not None:
            self.audit.log(action, phone, user_id=user_id, success=success, details=details)

    async def _bounded(self, call: Awaitable[T], on_timeout: T) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.provider_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Verification provider timed out after {self.provider_timeout}s")
            return on_timeout

    def _live_pending(self, user_id: str, now: datetime) -> Optional[PendingVerification]:
        entry = self.pending.get(user_id)
        if entry is not None and entry.is_expired(now):
            return None
        return entry

    def _verified_outcome(self, user: UserRecord) -> VerificationOutcome:
        return VerificationOutcome(
            user_id=user.id,
            state=VerificationState.VERIFIED,
            phone=user.phone,
            already_verified=True,
        )

    async def register_contact(self, user_id: str, **profile: Any) -> UserRecord:
        """First contact with the bot: create the user record with defaults if it is new."""
        async with self.locks.hold(user_id):
            return self.user_store.ensure_user(user_id, **profile)

    async def get_state(self, user_id: str) -> VerificationOutcome:
        user = self.user_store.get(user_id)
        if user is not None and user.verified:
            return self._verified_outcome(user)
        entry = self._live_pending(user_id, self.clock())
        if entry is not None:
            return VerificationOutcome(
                user_id=user_id,
                state=VerificationState.AWAITING_CODE,
                phone=entry.phone,
                attempts=entry.attempts,
            )
        return VerificationOutcome(
            user_id=user_id,
            state=VerificationState.UNVERIFIED,
            phone=user.phone if user else None,
        )

    async def submit_phone(self, user_id: str, phone: str) -> VerificationOutcome:
        async with self.locks.hold(user_id):
            user = self.user_store.get(user_id)
            if user is not None and user.verified:
                return self._verified_outcome(user)

            now = self.clock()
            current = self._live_pending(user_id, now)
            state = VerificationState.AWAITING_CODE if current else VerificationState.UNVERIFIED
            attempts = current.attempts if current else 0
            normalized = normalize_phone(phone, self.default_country_code)
            if not is_valid_phone(normalized):
                logger.info(f"Rejected phone format for user {user_id}")
                return VerificationOutcome(
                    user_id=user_id,
                    state=state,
                    error=VerificationErrorKind.INVALID_PHONE_FORMAT,
                    attempts=attempts,
                )

            result = await self._bounded(
                self.provider.start(normalized),
                StartResult(error=ProviderError.UNREACHABLE),
            )
            if not result.ok:
                self._audit("verification_start", normalized, user_id, success=False, error=result.error.value)
                return VerificationOutcome(
                    user_id=user_id,
                    state=state,
                    error=_PROVIDER_ERRORS[result.error],
                    phone=current.phone if current else None,
                    attempts=attempts,
                )

            def _assign_phone(record: UserRecord) -> None:
                record.phone = normalized

            # User store first: a storage failure here leaves no pending entry behind
            self.user_store.update(user_id, _assign_phone)
            self.pending.put(user_id, PendingVerification(
                user_id=user_id,
                phone=normalized,
                session_ref=result.session_ref,
                created_at=now,
                expires_at=now + self.ttl,
                attempts=0,
            ))
            if current is not None:
                logger.info(f"Superseded pending verification for user {user_id}")
            self._audit("verification_start", normalized, user_id, superseded=current is not None)
            return VerificationOutcome(
                user_id=user_id,
                state=VerificationState.AWAITING_CODE,
                phone=normalized,
            )

    async def submit_code(self, user_id: str, code: str) -> VerificationOutcome:
        async with self.locks.hold(user_id):
            user = self.user_store.get(user_id)
            if user is not None and user.verified:
                return self._verified_outcome(user)

            entry = self.pending.get(user_id)
            if entry is None:
                return VerificationOutcome(
                    user_id=user_id,
                    state=VerificationState.UNVERIFIED,
                    error=VerificationErrorKind.SESSION_EXPIRED,
                )

            now = self.clock()
            if entry.is_expired(now):
                self.pending.remove(user_id)
                self._audit("verification_check", entry.phone, user_id, success=False, reason="expired")
                return VerificationOutcome(
                    user_id=user_id,
                    state=VerificationState.UNVERIFIED,
                    error=VerificationErrorKind.SESSION_EXPIRED,
                    phone=entry.phone,
                )

            result: CheckResult = await self._bounded(
                self.provider.check(entry.phone, str(code).strip()),
                CheckResult(error=ProviderError.UNREACHABLE),
            )
            if not result.ok:
                self._audit("verification_check", entry.phone, user_id, success=False, error=result.error.value)
                return VerificationOutcome(
                    user_id=user_id,
                    state=VerificationState.AWAITING_CODE,
                    error=_PROVIDER_ERRORS[result.error],
                    phone=entry.phone,
                    attempts=entry.attempts,
                )

            if result.status == CheckStatus.APPROVED:
                def _mark_verified(record: UserRecord) -> None:
                    record.phone = entry.phone
                    record.verified = True
                    record.verified_at = now

                # Pending entry is cleared only after the verified flag is stored
                self.user_store.update(user_id, _mark_verified)
                self.pending.remove(user_id)
                self._audit("verification_check", entry.phone, user_id, attempts=entry.attempts + 1)
                logger.info(f"User {user_id} verified")
                return VerificationOutcome(
                    user_id=user_id,
                    state=VerificationState.VERIFIED,
                    phone=entry.phone,
                    attempts=entry.attempts,
                )

            if result.status == CheckStatus.EXPIRED:
                self.pending.remove(user_id)
                self._audit("verification_check", entry.phone, user_id, success=False, reason="expired")
                return VerificationOutcome(
                    user_id=user_id,
                    state=VerificationState.UNVERIFIED,
                    error=VerificationErrorKind.SESSION_EXPIRED,
                    phone=entry.phone,
                )

            attempts = entry.attempts + 1
            if attempts > self.max_attempts:
                self.pending.remove(user_id)
                self._audit("verification_check", entry.phone, user_id, success=False, reason="too_many_attempts")
                return VerificationOutcome(
                    user_id=user_id,
                    state=VerificationState.UNVERIFIED,
                    error=VerificationErrorKind.TOO_MANY_ATTEMPTS,
                    phone=entry.phone,
                    attempts=attempts,
                )
            self.pending.put(user_id, replace(entry, attempts=attempts))
            self._audit("verification_check", entry.phone, user_id, success=False, reason="invalid_code", attempts=attempts)
            return VerificationOutcome(
                user_id=user_id,
                state=VerificationState.AWAITING_CODE,
                error=VerificationErrorKind.INVALID_CODE,
                phone=entry.phone,
                attempts=attempts,
            )

    def sweep_expired(self) -> int:
        return self.pending.sweep(self.clock())

