"""
Mock Payments Gateway Client.

Purpose:
- Provides a fake payment gateway used for development/testing
- Does NOT make any network calls
- Behaves like the real gateway: issues authorities, remembers the amount it
  was asked to collect, answers "already verified" for a repeated verify

Usage:
- Wired in src/api/dependencies.py when the gateway mode is "mock"
- Called by GatewayReconciliationFlow via the PaymentGatewayClient interface

Swap:
Replace this mock client with the real HTTP client in
clients/real_http/payments.py when a merchant id is configured.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Set

from src.escrow.errors import GatewayUnavailableError
from src.integrations.contracts.interfaces import (
    GatewayCode,
    GatewayPaymentRequest,
    GatewayPaymentResult,
    GatewayVerifyRequest,
    GatewayVerifyResult,
    PaymentGatewayClient,
)

logger = logging.getLogger(__name__)

# Gateway error codes the mock can hand back.
MERCHANT_INVALID = -9
AMOUNT_MISMATCH = -50
SESSION_NOT_PAID = -51


class MockPaymentsClient(PaymentGatewayClient):
    """
    Mock payment gateway.

    Parameters
    ----------
    start_pay_base : str
        Prefix of the redirect URL handed back to payers.
    reject_requests : bool
        If True, every payment request is refused with ``MERCHANT_INVALID``.
    unavailable : bool
        If True, every call raises GatewayUnavailableError as a network failure would.
    """

    def __init__(
        self,
        start_pay_base: str = "https://sandbox.gateway.test/pg/StartPay",
        reject_requests: bool = False,
        unavailable: bool = False,
    ) -> None:
        self.start_pay_base = start_pay_base.rstrip("/")
        self.reject_requests = reject_requests
        self.unavailable = unavailable

        # In-memory gateway state (reset on restart)
        self._amounts: Dict[str, int] = {}
        self._verified: Dict[str, str] = {}
        self._unpaid: Set[str] = set()
        self._next_authorities: List[str] = []
        self._next_ref_ids: List[str] = []

        self.payment_requests: List[GatewayPaymentRequest] = []
        self.verify_requests: List[GatewayVerifyRequest] = []

        logger.info("[GATEWAY MOCK] Client initialised")

    # ------------------------------------------------------------------
    # Scripting helpers for tests and demos
    # ------------------------------------------------------------------

    def queue_authority(self, authority: str) -> None:
        self._next_authorities.append(authority)

    def queue_ref_id(self, ref_id: str) -> None:
        self._next_ref_ids.append(ref_id)

    def mark_unpaid(self, authority: str) -> None:
        """The payer abandoned the payment at the gateway; verify will fail."""
        self._unpaid.add(authority)

    # ------------------------------------------------------------------
    # Gateway API
    # ------------------------------------------------------------------

    def start_pay_url(self, authority: str) -> str:
        return f"{self.start_pay_base}/{authority}"

    async def request_payment(self, request: GatewayPaymentRequest) -> GatewayPaymentResult:
        self._check_available("request_payment")
        self.payment_requests.append(request)
        logger.info("[GATEWAY MOCK] Payment request amount=%s callback=%s", request.amount, request.callback_url)

        if self.reject_requests:
            return GatewayPaymentResult(
                code=MERCHANT_INVALID,
                message="Terminal is not valid, please check merchant_id or ip address.",
                errors={"code": MERCHANT_INVALID, "message": "Terminal is not valid."},
            )

        authority = self._next_authorities.pop(0) if self._next_authorities else self._new_authority()
        self._amounts[authority] = request.amount
        logger.info("[GATEWAY MOCK] Issued authority %s", authority)
        return GatewayPaymentResult(code=GatewayCode.SUCCESS, authority=authority, message="Success")

    async def verify_payment(self, request: GatewayVerifyRequest) -> GatewayVerifyResult:
        self._check_available("verify_payment")
        self.verify_requests.append(request)
        authority = request.authority

        if authority in self._verified:
            logger.info("[GATEWAY MOCK] Authority %s already verified", authority)
            return GatewayVerifyResult(
                code=GatewayCode.ALREADY_VERIFIED,
                ref_id=self._verified[authority],
                message="Verified",
            )

        expected = self._amounts.get(authority)
        if expected is None or authority in self._unpaid:
            return GatewayVerifyResult(
                code=SESSION_NOT_PAID,
                message="Session is not valid, session is not active paid try.",
                errors={"code": SESSION_NOT_PAID, "message": "Session is not paid."},
            )
        if expected != request.amount:
            return GatewayVerifyResult(
                code=AMOUNT_MISMATCH,
                message="Amount is not the same as the requested amount.",
                errors={"code": AMOUNT_MISMATCH, "message": "Amount mismatch."},
            )

        ref_id = self._next_ref_ids.pop(0) if self._next_ref_ids else self._new_ref_id()
        self._verified[authority] = ref_id
        logger.info("[GATEWAY MOCK] Authority %s verified ref_id=%s", authority, ref_id)
        return GatewayVerifyResult(code=GatewayCode.SUCCESS, ref_id=ref_id, message="Paid")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_available(self, operation: str) -> None:
        if self.unavailable:
            logger.warning("[GATEWAY MOCK] Simulating outage for %s", operation)
            raise GatewayUnavailableError("Payment gateway is unreachable", status_code=503)

    @staticmethod
    def _new_authority() -> str:
        return f"A{uuid.uuid4().hex[:35].upper()}"

    @staticmethod
    def _new_ref_id() -> str:
        return str(uuid.uuid4().int % 10**10)
