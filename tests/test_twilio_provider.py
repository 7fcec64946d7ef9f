import pytest
from twilio.base.exceptions import TwilioRestException

from phoneverify.application.ports.otp_provider import CheckStatus, ProviderError
from phoneverify.application.services.verification_service import VerificationErrorKind, VerificationOrchestrator
from phoneverify.infrastructure.otp.twilio_provider import TwilioVerificationProvider
from phoneverify.infrastructure.pending.memory_pending_table import InMemoryPendingVerificationTable

PHONE = "+2348000000000"


class FakeRecord:
    def __init__(self, sid=None, status=None):
        self.sid = sid
        self.status = status


class FakeEndpoint:
    """Returns (or raises) one result per call; a list is consumed in order, the last one repeating."""

    def __init__(self, result):
        self.results = list(result) if isinstance(result, list) else [result]
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeService:
    def __init__(self, start_result, check_result):
        self.verifications = FakeEndpoint(start_result)
        self.verification_checks = FakeEndpoint(check_result)


class FakeClient:
    def __init__(self, start_result=None, check_result=None):
        self.service = FakeService(start_result or FakeRecord(sid="VE123"), check_result or FakeRecord(status="approved"))
        self.requested_sids = []
        self.verify = self
        self.v2 = self

    def services(self, sid):
        self.requested_sids.append(sid)
        return self.service


def make_provider(client):
    return TwilioVerificationProvider(client=client, verify_sid="VA123", timeout=5)


def max_attempts_error():
    return TwilioRestException(429, "/VerificationCheck", msg="Max check attempts reached", code=60202)


@pytest.mark.asyncio
async def test_start_sends_sms_and_returns_verification_sid():
    client = FakeClient()
    result = await make_provider(client).start(PHONE)
    assert result.ok
    assert result.session_ref == "VE123"
    assert client.requested_sids == ["VA123"]
    assert client.service.verifications.calls == [{"to": PHONE, "channel": "sms"}]


@pytest.mark.asyncio
async def test_start_maps_auth_failure_to_unauthorized():
    client = FakeClient(start_result=TwilioRestException(401, "/Verifications", msg="Authenticate"))
    result = await make_provider(client).start(PHONE)
    assert result.error == ProviderError.UNAUTHORIZED


@pytest.mark.asyncio
async def test_start_maps_transport_failure_to_unreachable():
    client = FakeClient(start_result=ConnectionError("connection reset"))
    result = await make_provider(client).start(PHONE)
    assert result.error == ProviderError.UNREACHABLE


@pytest.mark.asyncio
async def test_check_maps_statuses():
    expectations = {
        "approved": CheckStatus.APPROVED,
        "pending": CheckStatus.REJECTED,
        "canceled": CheckStatus.EXPIRED,
        "expired": CheckStatus.EXPIRED,
    }
    for status, expected in expectations.items():
        client = FakeClient(check_result=FakeRecord(status=status))
        result = await make_provider(client).check(PHONE, "123456")
        assert result.status == expected, status
    assert client.service.verification_checks.calls == [{"to": PHONE, "code": "123456"}]


@pytest.mark.asyncio
async def test_check_not_found_means_expired():
    client = FakeClient(check_result=TwilioRestException(404, "/VerificationCheck", msg="not found"))
    result = await make_provider(client).check(PHONE, "123456")
    assert result.ok
    assert result.status == CheckStatus.EXPIRED


@pytest.mark.asyncio
async def test_check_attempt_limit_is_reported_as_wrong_code():
    result = await make_provider(FakeClient(check_result=max_attempts_error())).check(PHONE, "123456")
    assert result.ok
    assert result.status == CheckStatus.REJECTED

    by_code = TwilioRestException(400, "/VerificationCheck", msg="Max check attempts reached", code=60202)
    result = await make_provider(FakeClient(check_result=by_code)).check(PHONE, "123456")
    assert result.status == CheckStatus.REJECTED


@pytest.mark.asyncio
async def test_check_errors_map_to_provider_errors():
    client = FakeClient(check_result=TwilioRestException(403, "/VerificationCheck", msg="forbidden"))
    assert (await make_provider(client).check(PHONE, "1")).error == ProviderError.UNAUTHORIZED

    client = FakeClient(check_result=TwilioRestException(500, "/VerificationCheck", msg="boom"))
    assert (await make_provider(client).check(PHONE, "1")).error == ProviderError.UNREACHABLE

    client = FakeClient(check_result=TimeoutError("read timed out"))
    assert (await make_provider(client).check(PHONE, "1")).error == ProviderError.UNREACHABLE


@pytest.mark.asyncio
async def test_wrong_codes_past_twilio_limit_end_in_too_many_attempts(user_store, clock):
    # Twilio keeps answering "pending" for five wrong codes, then refuses with 429
    checks = [FakeRecord(status="pending")] * 5 + [max_attempts_error()]
    orch = VerificationOrchestrator(
        user_store=user_store,
        pending=InMemoryPendingVerificationTable(),
        provider=make_provider(FakeClient(check_result=checks)),
        clock=clock.now,
        max_attempts=5,
    )
    assert (await orch.submit_phone("42", PHONE)).success

    errors = [(await orch.submit_code("42", "000000")).error for _ in range(6)]
    assert errors == [VerificationErrorKind.INVALID_CODE] * 5 + [VerificationErrorKind.TOO_MANY_ATTEMPTS]
    assert orch.pending.get("42") is None
    assert user_store.get("42").verified is False
