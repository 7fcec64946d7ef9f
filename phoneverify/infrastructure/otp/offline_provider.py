import logging
import random
import time
import uuid
from typing import Callable, Dict, Optional, Tuple

from ...application.ports.otp_provider import CheckResult, CheckStatus, StartResult, VerificationProvider

logger = logging.getLogger(__name__)

_RNG = random.SystemRandom()

OFFLINE_CODE_TTL_SECONDS = 10 * 60


def generate_code(length: int = 6) -> str:
    return "".join(_RNG.choice("0123456789") for _ in range(length))


class OfflineVerificationProvider(VerificationProvider):
    """Development provider that keeps codes in memory and never sends an SMS.

    Each entry maps ``phone -> (code, created_at)``. Codes are consumed on a
    successful check and dropped lazily once older than the TTL.
    """

    def __init__(
        self,
        ttl_seconds: int = OFFLINE_CODE_TTL_SECONDS,
        code_length: int = 6,
        clock: Callable[[], float] = time.time,
        code_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.code_factory = code_factory or (lambda: generate_code(code_length))
        self._codes: Dict[str, Tuple[str, float]] = {}

    async def start(self, phone: str) -> StartResult:
        code = self.code_factory()
        self._codes[phone] = (code, self.clock())
        # Nothing is delivered, so the log line is the only way to read the code
        logger.info(f"Offline verification code for {phone}: {code}")
        return StartResult(session_ref=f"offline-{uuid.uuid4().hex}")

    async def check(self, phone: str, code: str) -> CheckResult:
        entry = self._codes.get(phone)
        if entry is None:
            return CheckResult(status=CheckStatus.REJECTED)
        stored_code, created_at = entry
        if self.clock() - created_at > self.ttl_seconds:
            self._codes.pop(phone, None)
            logger.info(f"Offline verification code expired for {phone}")
            return CheckResult(status=CheckStatus.EXPIRED)
        if str(code).strip() == stored_code:
            self._codes.pop(phone, None)
            return CheckResult(status=CheckStatus.APPROVED)
        return CheckResult(status=CheckStatus.REJECTED)
