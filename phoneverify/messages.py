# Bot replies, one per verification result
from .application.services.verification_service import (
    VerificationErrorKind,
    VerificationOutcome,
    VerificationState,
)
from .config import settings

ERROR_MESSAGES = {
    VerificationErrorKind.INVALID_PHONE_FORMAT: "Phone format invalid. Send your phone in international format, e.g. +2348012345678",
    VerificationErrorKind.PROVIDER_UNREACHABLE: "We could not send or check your code right now. Please try again later.",
    VerificationErrorKind.PROVIDER_UNAUTHORIZED: "We could not send or check your code right now. Please try again later.",
    VerificationErrorKind.SESSION_EXPIRED: "Your verification session has expired. Please send your phone number again to get a new code.",
    VerificationErrorKind.INVALID_CODE: "Invalid code. Please check the SMS and try again.",
    VerificationErrorKind.TOO_MANY_ATTEMPTS: "Too many attempts. Please send your phone number again to restart verification.",
}


def message_for(outcome: VerificationOutcome) -> str:
    if outcome.error is not None:
        return ERROR_MESSAGES[outcome.error]
    if outcome.already_verified:
        return "Your phone number is already verified."
    if outcome.state == VerificationState.VERIFIED:
        return "Verification successful! Full features unlocked."
    if outcome.state == VerificationState.AWAITING_CODE:
        return f"Code sent to {outcome.phone}. Enter the {settings.OTP_LENGTH}-digit code here."
    return "Please share or enter your phone number to verify your account."
