"""
Real Payments HTTP Client.

Used when a gateway merchant id is configured. Talks JSON to the gateway's
v4 request/verify endpoints; sandbox or live base URL comes from config.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from src.escrow.errors import GatewayUnavailableError
from src.integrations.contracts.interfaces import (
    GatewayPaymentRequest,
    GatewayPaymentResult,
    GatewayVerifyRequest,
    GatewayVerifyResult,
    PaymentGatewayClient,
)
from src.integrations.policy.response_wrappers import (
    extract_error_message,
    normalize_payment_request_response,
    normalize_payment_verify_response,
)
from src.utils.escrow_config_loader import GatewayConfig

logger = logging.getLogger(__name__)

_GATEWAY_ERROR_MESSAGE = "Error communicating with the payment gateway"


class RealPaymentsClient(PaymentGatewayClient):
    def __init__(
        self,
        config: GatewayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.base_url = config.base_url
        self.timeout_seconds = config.timeout_seconds
        # Injected in tests (httpx.MockTransport); None means real network.
        self._transport = transport
        if not config.merchant_id:
            logger.warning("Payment gateway merchant id is not set.")

    def start_pay_url(self, authority: str) -> str:
        return f"{self.base_url}{self.config.start_pay_path}/{authority}"

    async def request_payment(self, request: GatewayPaymentRequest) -> GatewayPaymentResult:
        payload: Dict[str, Any] = {
            "merchant_id": request.merchant_id,
            "amount": request.amount,
            "description": request.description,
            "callback_url": request.callback_url,
            "currency": request.currency,
            "metadata": request.metadata,
        }
        data = await self._post(self.config.request_path, payload)
        normalized = normalize_payment_request_response(data)
        return GatewayPaymentResult(
            code=normalized.code,
            authority=normalized.authority,
            message=normalized.message,
            errors=normalized.errors,
            raw=normalized.raw,
        )

    async def verify_payment(self, request: GatewayVerifyRequest) -> GatewayVerifyResult:
        payload: Dict[str, Any] = {
            "merchant_id": request.merchant_id,
            "amount": request.amount,
            "authority": request.authority,
        }
        data = await self._post(self.config.verify_path, payload)
        normalized = normalize_payment_verify_response(data)
        return GatewayVerifyResult(
            code=normalized.code,
            ref_id=normalized.ref_id,
            message=normalized.message,
            card_pan=normalized.card_pan,
            fee=normalized.fee,
            errors=normalized.errors,
            raw=normalized.raw,
        )

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        try:
            logger.info("Sending gateway request to %s", url)
            logger.debug("Gateway payload: %s", payload)
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                data = response.json() if response.content else {}
            logger.debug("Gateway response: %s", data)
            return data
        except httpx.HTTPStatusError as e:
            body = _safe_json(e.response)
            logger.error("HTTP error from payment gateway: %s %s", e.response.status_code, e.response.text)
            raise GatewayUnavailableError(
                extract_error_message(body, _GATEWAY_ERROR_MESSAGE),
                status_code=e.response.status_code,
                payload=body if isinstance(body, dict) else {},
            ) from e
        except httpx.TimeoutException as e:
            logger.error("Timed out waiting for payment gateway at %s", url)
            raise GatewayUnavailableError("Payment gateway timed out", status_code=504) from e
        except httpx.RequestError as e:
            logger.error("Request error connecting to payment gateway: %s", e)
            raise GatewayUnavailableError(_GATEWAY_ERROR_MESSAGE, status_code=502) from e
        except ValueError as e:
            # Body was not JSON.
            logger.error("Payment gateway returned a non-JSON body: %s", e)
            raise GatewayUnavailableError("Payment gateway returned an unreadable response", status_code=502) from e


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
