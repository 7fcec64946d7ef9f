import pytest

from phoneverify.config import Settings
from phoneverify.exceptions import ConfigurationError
from phoneverify.infrastructure.otp.factory import build_verification_provider
from phoneverify.infrastructure.otp.offline_provider import OfflineVerificationProvider
from phoneverify.infrastructure.otp.twilio_provider import TwilioVerificationProvider


def make_settings(**overrides):
    values = {
        "TWILIO_ACCOUNT_SID": "",
        "TWILIO_AUTH_TOKEN": "",
        "TWILIO_VERIFY_SERVICE_SID": "",
        "OFFLINE_VERIFICATION": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_twilio_selected_when_all_credentials_present():
    settings = make_settings(
        TWILIO_ACCOUNT_SID="AC00000000000000000000000000000000",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_VERIFY_SERVICE_SID="VA00000000000000000000000000000000",
    )
    provider = build_verification_provider(settings)
    assert isinstance(provider, TwilioVerificationProvider)
    assert provider.verify_sid == "VA00000000000000000000000000000000"


def test_twilio_credentials_win_over_offline_flag():
    settings = make_settings(
        TWILIO_ACCOUNT_SID="AC00000000000000000000000000000000",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_VERIFY_SERVICE_SID="VA00000000000000000000000000000000",
        OFFLINE_VERIFICATION=True,
    )
    assert isinstance(build_verification_provider(settings), TwilioVerificationProvider)


def test_partial_twilio_credentials_are_rejected():
    settings = make_settings(TWILIO_ACCOUNT_SID="AC00000000000000000000000000000000", OFFLINE_VERIFICATION=True)
    with pytest.raises(ConfigurationError):
        build_verification_provider(settings)


def test_offline_provider_only_when_explicitly_enabled():
    provider = build_verification_provider(make_settings(OFFLINE_VERIFICATION=True, OTP_TTL_MINUTES=5))
    assert isinstance(provider, OfflineVerificationProvider)
    assert provider.ttl_seconds == 300

    with pytest.raises(ConfigurationError):
        build_verification_provider(make_settings())
