import asyncio
import logging
from typing import Optional

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from ...application.ports.otp_provider import (
    CheckResult,
    CheckStatus,
    ProviderError,
    StartResult,
    VerificationProvider,
)
from ...config import settings

logger = logging.getLogger(__name__)

_EXPIRED_STATUSES = {"canceled", "expired", "failed", "max_attempts_reached"}

# Twilio refuses further checks once its own attempt limit is hit
MAX_CHECK_ATTEMPTS_ERROR = 60202


def _error_for(exc: Exception) -> ProviderError:
    if isinstance(exc, TwilioRestException) and exc.status in (401, 403):
        return ProviderError.UNAUTHORIZED
    return ProviderError.UNREACHABLE


class TwilioVerificationProvider(VerificationProvider):
    """Twilio Verify backed provider; the code itself never leaves Twilio."""

    def __init__(self, client: Optional[Client] = None, verify_sid: Optional[str] = None,
                 account_sid: Optional[str] = None, auth_token: Optional[str] = None, timeout: Optional[float] = None):
        timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self.client = client or Client(
            account_sid or settings.TWILIO_ACCOUNT_SID,
            auth_token or settings.TWILIO_AUTH_TOKEN,
            http_client=TwilioHttpClient(timeout=timeout),
        )
        self.verify_sid = verify_sid or settings.TWILIO_VERIFY_SERVICE_SID

    def _service(self):
        return self.client.verify.v2.services(self.verify_sid)

    def _start(self, phone: str) -> str:
        verification = self._service().verifications.create(to=phone, channel="sms")
        return verification.sid

    def _check(self, phone: str, code: str) -> str:
        check = self._service().verification_checks.create(to=phone, code=code)
        return check.status

    async def start(self, phone: str) -> StartResult:
        try:
            sid = await asyncio.to_thread(self._start, phone)
        except (TwilioException, OSError) as e:
            logger.error(f"Twilio start verification error: {e}")
            return StartResult(error=_error_for(e))
        return StartResult(session_ref=sid)

    async def check(self, phone: str, code: str) -> CheckResult:
        try:
            status = await asyncio.to_thread(self._check, phone, code)
        except TwilioRestException as e:
            # Twilio answers 404 once a verification is approved, expired or out of attempts
            if e.status == 404:
                return CheckResult(status=CheckStatus.EXPIRED)
            if e.status == 429 or e.code == MAX_CHECK_ATTEMPTS_ERROR:
                logger.warning(f"Twilio check attempts exhausted for verification: {e}")
                return CheckResult(status=CheckStatus.REJECTED)
            logger.error(f"Twilio check verification error: {e}")
            return CheckResult(error=_error_for(e))
        except (TwilioException, OSError) as e:
            logger.error(f"Twilio check verification error: {e}")
            return CheckResult(error=ProviderError.UNREACHABLE)
        if status == "approved":
            return CheckResult(status=CheckStatus.APPROVED)
        if status in _EXPIRED_STATUSES:
            return CheckResult(status=CheckStatus.EXPIRED)
        return CheckResult(status=CheckStatus.REJECTED)
