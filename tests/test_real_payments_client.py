"""Tests for the real HTTP gateway client, driven through httpx.MockTransport."""

import json

import httpx
import pytest

from src.escrow.errors import GatewayUnavailableError
from src.integrations.clients.real_http.payments import RealPaymentsClient
from src.integrations.contracts.interfaces import GatewayPaymentRequest, GatewayVerifyRequest
from src.integrations.policy.response_wrappers import IntegrationResponseError
from src.utils.escrow_config_loader import GatewayConfig


def _client(handler, **config_overrides):
    config = GatewayConfig(mode="real", merchant_id="M-1", **config_overrides)
    return RealPaymentsClient(config, transport=httpx.MockTransport(handler))


def _payment_request():
    return GatewayPaymentRequest(
        merchant_id="M-1",
        amount=100_000,
        description="Contract payment: Website redesign",
        callback_url="http://localhost:8000/api/payment-verify?contractId=C1",
        currency="IRT",
        metadata={"mobile": "0912", "email": None, "contract_id": "C1"},
    )


@pytest.mark.asyncio
async def test_request_payment_posts_to_sandbox_and_parses_authority():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"code": 100, "message": "Success", "authority": "A1"}, "errors": []})

    client = _client(handler)
    result = await client.request_payment(_payment_request())

    assert seen["url"] == "https://sandbox.zarinpal.com/pg/v4/payment/request.json"
    assert seen["body"]["merchant_id"] == "M-1"
    assert seen["body"]["amount"] == 100_000
    assert seen["body"]["callback_url"].endswith("contractId=C1")
    assert result.accepted is True
    assert result.authority == "A1"
    assert client.start_pay_url("A1") == "https://sandbox.zarinpal.com/pg/StartPay/A1"


@pytest.mark.asyncio
async def test_live_mode_uses_live_base_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["host"] = request.url.host
        return httpx.Response(200, json={"data": {"code": 100, "authority": "A1"}, "errors": []})

    client = _client(handler, sandbox=False)
    await client.request_payment(_payment_request())

    assert seen["host"] == "payment.zarinpal.com"
    assert client.start_pay_url("A1").startswith("https://payment.zarinpal.com/")


@pytest.mark.asyncio
async def test_business_error_in_body_is_not_accepted():
    def handler(request):
        return httpx.Response(200, json={"data": [], "errors": {"code": -9, "message": "The input params invalid"}})

    result = await _client(handler).request_payment(_payment_request())

    assert result.accepted is False
    assert result.code == -9
    assert result.message == "The input params invalid"


@pytest.mark.asyncio
async def test_http_error_passes_status_and_message_through():
    def handler(request):
        return httpx.Response(422, json={"data": [], "errors": {"code": -10, "message": "Terminal is not valid"}})

    with pytest.raises(GatewayUnavailableError) as exc_info:
        await _client(handler).request_payment(_payment_request())

    assert exc_info.value.status_code == 422
    assert exc_info.value.message == "Terminal is not valid"
    assert exc_info.value.payload["errors"]["code"] == -10


@pytest.mark.asyncio
async def test_network_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayUnavailableError) as exc_info:
        await _client(handler).request_payment(_payment_request())

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_timeout_is_gateway_timeout():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(GatewayUnavailableError) as exc_info:
        await _client(handler).request_payment(_payment_request())

    assert exc_info.value.status_code == 504


@pytest.mark.asyncio
async def test_verify_payment_parses_ref_id():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"data": {"code": 100, "message": "Verified", "ref_id": 201, "card_pan": "502229******5995", "fee": 0}, "errors": []},
        )

    result = await _client(handler).verify_payment(GatewayVerifyRequest(merchant_id="M-1", amount=100_000, authority="A1"))

    assert seen["url"].endswith("/pg/v4/payment/verify.json")
    assert seen["body"] == {"merchant_id": "M-1", "amount": 100_000, "authority": "A1"}
    assert result.code == 100
    assert result.ref_id == "201"
    assert result.card_pan == "502229******5995"
    assert result.fee == 0


@pytest.mark.asyncio
async def test_body_without_code_is_integration_error():
    def handler(request):
        return httpx.Response(200, json={"data": {"message": "??"}, "errors": []})

    with pytest.raises(IntegrationResponseError):
        await _client(handler).verify_payment(GatewayVerifyRequest(merchant_id="M-1", amount=1, authority="A1"))


@pytest.mark.asyncio
async def test_non_json_body_is_unavailable():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(GatewayUnavailableError):
        await _client(handler).request_payment(_payment_request())
