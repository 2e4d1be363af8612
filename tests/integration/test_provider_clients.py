"""
Integration Tests for the verification provider clients.

HTTP clients run against httpx.MockTransport so request shaping,
response parsing and retry behavior are exercised without a network.
"""

import json

import httpx
import pytest

from helios_waterfall.domain.entities import (
    BusinessVerificationRequest,
    CreditCheckRequest,
    RegistrationCheckRequest,
)
from helios_waterfall.domain.exceptions import (
    ProviderConfigurationException,
    ProviderException,
    ProviderTimeoutException,
)
from helios_waterfall.infrastructure.clients import (
    HttpISoftpullClient,
    HttpMiddeskClient,
    HttpSosClient,
    SandboxBusinessVerificationClient,
    SandboxCreditCheckClient,
    SandboxRegistrationCheckClient,
)

BUSINESS = BusinessVerificationRequest(
    business_name="Acme LLC",
    tax_id="12-3456789",
    address="1 Main St, Springfield",
    state="CA",
)
CREDIT = CreditCheckRequest(ssn="123-45-6789", owner_name="Jane Doe")
REGISTRATION = RegistrationCheckRequest(business_name="Acme LLC", state="CA")


class Recorder:
    """MockTransport handler replaying canned responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def middesk(handler, max_retries=2) -> HttpMiddeskClient:
    return HttpMiddeskClient(
        base_url="https://middesk.test",
        api_key="key",
        timeout=1.0,
        max_retries=max_retries,
        transport=httpx.MockTransport(handler),
    )


def isoftpull(handler, max_retries=2) -> HttpISoftpullClient:
    return HttpISoftpullClient(
        base_url="https://isoftpull.test",
        api_key="key",
        api_secret="secret",
        timeout=1.0,
        max_retries=max_retries,
        transport=httpx.MockTransport(handler),
    )


def sos(handler, max_retries=2) -> HttpSosClient:
    return HttpSosClient(
        base_url="https://sos.test",
        timeout=1.0,
        max_retries=max_retries,
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# Middesk
# =============================================================================

class TestMiddeskClient:
    @pytest.mark.asyncio
    async def test_approved_business_is_verified(self):
        handler = Recorder(httpx.Response(200, json={"id": "biz_1", "status": "approved"}))

        result = await middesk(handler).verify_business(BUSINESS)

        assert result.verified is True
        assert result.reference_id == "biz_1"
        sent = handler.requests[0]
        assert sent.url.path == "/v1/businesses"
        assert sent.headers["Authorization"] == "Bearer key"
        body = json.loads(sent.content)
        assert body["tin"] == {"tin": "12-3456789"}
        assert body["formation_state"] == "CA"

    @pytest.mark.asyncio
    async def test_rejected_business_is_not_verified(self):
        handler = Recorder(httpx.Response(200, json={"status": "rejected"}))

        result = await middesk(handler).verify_business(BUSINESS)

        assert result.verified is False

    @pytest.mark.asyncio
    async def test_pending_review_is_inconclusive(self):
        handler = Recorder(httpx.Response(200, json={"status": "in_review"}))

        result = await middesk(handler).verify_business(BUSINESS)

        assert result.verified is None

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        handler = Recorder(httpx.Response(422, text="bad tin"))

        with pytest.raises(ProviderException) as exc_info:
            await middesk(handler, max_retries=3).verify_business(BUSINESS)

        assert exc_info.value.status_code == 422
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_server_error_is_retried_then_raised(self):
        handler = Recorder(httpx.Response(503))

        with pytest.raises(ProviderException) as exc_info:
            await middesk(handler, max_retries=2).verify_business(BUSINESS)

        assert exc_info.value.status_code == 503
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_server_error_then_success(self):
        handler = Recorder(
            httpx.Response(502),
            httpx.Response(200, json={"status": "verified"}),
        )

        result = await middesk(handler).verify_business(BUSINESS)

        assert result.verified is True
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_timeout(self):
        handler = Recorder(httpx.ReadTimeout("slow"))

        with pytest.raises(ProviderTimeoutException) as exc_info:
            await middesk(handler, max_retries=1).verify_business(BUSINESS)

        assert exc_info.value.provider == "middesk"

    @pytest.mark.asyncio
    async def test_missing_tax_id_is_rejected_before_calling(self):
        handler = Recorder(httpx.Response(200, json={"status": "approved"}))

        with pytest.raises(ProviderConfigurationException):
            await middesk(handler).verify_business(
                BusinessVerificationRequest(business_name="Acme LLC", tax_id=None)
            )

        assert handler.requests == []


# =============================================================================
# iSoftpull
# =============================================================================

class TestISoftpullClient:
    @pytest.mark.asyncio
    async def test_credit_score_parsed(self):
        handler = Recorder(
            httpx.Response(200, json={"credit_score": "742", "risk_grade": "B"})
        )

        report = await isoftpull(handler).check_credit(CREDIT)

        assert report.credit_score == 742
        assert report.risk_grade == "B"
        body = json.loads(handler.requests[0].content)
        assert body["first_name"] == "Jane"
        assert body["last_name"] == "Doe"
        assert handler.requests[0].headers["api-secret"] == "secret"

    @pytest.mark.asyncio
    async def test_non_numeric_score_raises(self):
        handler = Recorder(httpx.Response(200, json={"credit_score": "n/a"}))

        with pytest.raises(ProviderException):
            await isoftpull(handler).check_credit(CREDIT)

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        handler = Recorder(httpx.Response(200, text="<html>"))

        with pytest.raises(ProviderException):
            await isoftpull(handler).check_credit(CREDIT)

    @pytest.mark.asyncio
    async def test_missing_ssn_is_rejected(self):
        handler = Recorder(httpx.Response(200, json={}))

        with pytest.raises(ProviderConfigurationException):
            await isoftpull(handler).check_credit(CreditCheckRequest(ssn=None))


# =============================================================================
# Secretary of State
# =============================================================================

class TestSosClient:
    @pytest.mark.asyncio
    async def test_active_registration(self):
        handler = Recorder(
            httpx.Response(200, json={"status": "ACTIVE", "entity_name": "ACME LLC"})
        )

        record = await sos(handler).verify_registration(REGISTRATION)

        assert record.is_active
        assert record.entity_name == "ACME LLC"
        assert handler.requests[0].url.params["state"] == "CA"

    @pytest.mark.asyncio
    async def test_not_found(self):
        handler = Recorder(httpx.Response(404))

        record = await sos(handler).verify_registration(REGISTRATION)

        assert record.status == "NOT_FOUND"
        assert not record.is_active


# =============================================================================
# Sandbox
# =============================================================================

class TestSandboxClients:
    @pytest.mark.asyncio
    async def test_results_are_deterministic(self):
        client = SandboxCreditCheckClient()

        first = await client.check_credit(CREDIT)
        second = await client.check_credit(CREDIT)

        assert first == second
        assert 550 <= first.credit_score <= 849

    @pytest.mark.asyncio
    async def test_business_verification_depends_on_tax_id(self):
        client = SandboxBusinessVerificationClient()

        assert (await client.verify_business(BUSINESS)).verified is True
        short = BusinessVerificationRequest(business_name="Acme LLC", tax_id="123")
        assert (await client.verify_business(short)).verified is False

    @pytest.mark.asyncio
    async def test_dissolved_business_is_inactive(self):
        client = SandboxRegistrationCheckClient()

        record = await client.verify_registration(
            RegistrationCheckRequest(business_name="Old Co (Dissolved)")
        )

        assert record.status == "INACTIVE"

    @pytest.mark.asyncio
    async def test_validation_matches_live_clients(self):
        with pytest.raises(ProviderConfigurationException):
            await SandboxRegistrationCheckClient().verify_registration(
                RegistrationCheckRequest(business_name="")
            )
