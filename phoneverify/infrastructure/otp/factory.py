import logging

from ...application.ports.otp_provider import VerificationProvider
from ...config import Settings
from ...exceptions import ConfigurationError
from .offline_provider import OfflineVerificationProvider
from .twilio_provider import TwilioVerificationProvider

logger = logging.getLogger(__name__)


def build_verification_provider(settings: Settings) -> VerificationProvider:
    """Pick the provider once, at startup, from which credentials are present."""
    if settings.twilio_configured:
        logger.info("Using Twilio Verify provider")
        return TwilioVerificationProvider(
            verify_sid=settings.TWILIO_VERIFY_SERVICE_SID,
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        )
    if any(settings.twilio_credentials):
        raise ConfigurationError(
            "Twilio is partially configured; set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_VERIFY_SERVICE_SID"
        )
    if settings.OFFLINE_VERIFICATION:
        logger.warning("Using offline verification provider; codes are logged, not sent")
        return OfflineVerificationProvider(
            ttl_seconds=settings.OTP_TTL_MINUTES * 60,
            code_length=settings.OTP_LENGTH,
        )
    raise ConfigurationError("No verification provider configured; set Twilio credentials or OFFLINE_VERIFICATION=true")
