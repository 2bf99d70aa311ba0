"""
Gateway reconciliation flow.

Bridges the escrow ledger and the payment gateway across the two-phase
payment protocol:

1. initiate: ask the gateway for an authority, remember the expected amount
   under that authority, bind the authority to the contract's escrow record.
2. verify: on the gateway's callback, consume the remembered amount and ask
   the gateway to confirm the payment for exactly that amount.

The amount sent for verification always comes from the amount cache, never
from the callback query string. The cache entry is consumed on the first
verification attempt whatever the gateway says.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.database.contracts import ContractStore
from src.escrow.errors import (
    EscrowError,
    GatewayRejectedError,
    GatewayUnavailableError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from src.escrow.ledger import EscrowLedger
from src.escrow.models import Contract, ContractStatus, EscrowStatus, PayerInfo
from src.integrations.contracts.interfaces import (
    GatewayPaymentRequest,
    GatewayVerifyRequest,
    PaymentGatewayClient,
)
from src.integrations.contracts.payments import (
    CALLBACK_STATUS_OK,
    InitiationResult,
    VerificationKind,
    VerificationOutcome,
    classify_verify_code,
    validate_payment_request,
)
from src.integrations.policy.response_wrappers import IntegrationResponseError
from src.utils.escrow_config_loader import EscrowConfig

logger = logging.getLogger(__name__)


class GatewayReconciliationFlow:
    def __init__(
        self,
        gateway: PaymentGatewayClient,
        ledger: EscrowLedger,
        contracts: ContractStore,
        amount_cache,
        config: EscrowConfig,
    ) -> None:
        self.gateway = gateway
        self.ledger = ledger
        self.contracts = contracts
        self.amount_cache = amount_cache
        self.config = config

    # ------------------------------------------------------------------
    # Phase 1: initiate
    # ------------------------------------------------------------------

    async def initiate(self, contract: Contract, payer: Optional[PayerInfo] = None) -> InitiationResult:
        if not contract.requires_payment:
            raise InvalidRequestError("This contract does not require payment.")

        escrow = self.ledger.find_by_contract(contract.id)
        if escrow is None:
            raise NotFoundError(f"No escrow payment for contract '{contract.id}'.")
        if escrow.status != EscrowStatus.PENDING:
            raise InvalidStateError(f"Escrow payment {escrow.id} is already {escrow.status.value}.")

        payer = payer or PayerInfo()
        description = f"Contract payment: {contract.title}"
        request = GatewayPaymentRequest(
            merchant_id=self.config.gateway.merchant_id,
            amount=contract.payment_amount,
            description=description,
            callback_url=self.config.callback.url_for(contract.id),
            currency=self.config.gateway.currency,
            metadata={
                "mobile": payer.mobile,
                "email": payer.email,
                "contract_id": contract.id,
            },
        )

        problems = validate_payment_request(request)
        if problems:
            raise InvalidRequestError("; ".join(problems))

        logger.info("Initiating payment for contract %s amount=%s", contract.id, request.amount)
        try:
            result = await self.gateway.request_payment(request)
        except IntegrationResponseError as e:
            logger.error("Unreadable gateway response for contract %s: %s", contract.id, e)
            raise GatewayUnavailableError(str(e), status_code=502, payload=e.payload) from e

        if not result.accepted:
            logger.warning(
                "Gateway rejected payment for contract %s: code=%s message=%s",
                contract.id, result.code, result.message,
            )
            raise GatewayRejectedError(
                result.message or "Error communicating with the payment gateway",
                gateway_code=result.code,
                payload=result.errors,
            )

        authority = result.authority
        self.amount_cache.put(authority, contract.payment_amount)
        logger.info("Stored expected amount for authority %s: %s", authority, contract.payment_amount)

        payment = self.ledger.attach_authority(contract.id, authority, payer)
        return InitiationResult(
            payment_url=self.gateway.start_pay_url(authority),
            payment_id=payment.id,
            authority=authority,
        )

    # ------------------------------------------------------------------
    # Phase 2: verify callback
    # ------------------------------------------------------------------

    async def verify(self, authority: str, status: str, contract_id: Optional[str] = None) -> VerificationOutcome:
        logger.info("Payment verification callback: authority=%s status=%s contract=%s", authority, status, contract_id)

        if status != CALLBACK_STATUS_OK:
            return VerificationOutcome(kind=VerificationKind.CANCELLED, authority=authority)

        amount = self.amount_cache.take_and_remove(authority) if authority else None
        if amount is None:
            logger.error("Amount not found for authority: %s", authority)
            return VerificationOutcome(kind=VerificationKind.AMOUNT_NOT_FOUND, authority=authority)

        try:
            result = await self.gateway.verify_payment(
                GatewayVerifyRequest(
                    merchant_id=self.config.gateway.merchant_id,
                    amount=amount,
                    authority=authority,
                )
            )
        except (GatewayUnavailableError, IntegrationResponseError) as e:
            logger.error("Verification call failed for authority %s: %s", authority, e)
            return VerificationOutcome(kind=VerificationKind.FAILED, authority=authority, reason=str(e))

        self.ledger.note_ref_id(authority, result.ref_id)
        kind = classify_verify_code(result)

        if kind == VerificationKind.ALREADY_VERIFIED:
            logger.info("Authority %s was already verified", authority)
            return VerificationOutcome(
                kind=kind, authority=authority, ref_id=result.ref_id, gateway_code=result.code,
            )

        if kind == VerificationKind.FAILED:
            reason = result.message or "Unknown verification error"
            logger.warning("Verification failed for authority %s: code=%s %s", authority, result.code, reason)
            return VerificationOutcome(kind=kind, authority=authority, reason=reason, gateway_code=result.code)

        if not result.ref_id:
            return VerificationOutcome(
                kind=VerificationKind.FAILED,
                authority=authority,
                reason="Gateway reported success without a reference id",
                gateway_code=result.code,
            )

        try:
            payment = self.ledger.mark_paid(authority, result.ref_id)
        except EscrowError as e:
            logger.error("Could not record payment for authority %s: %s", authority, e)
            return VerificationOutcome(
                kind=VerificationKind.FAILED, authority=authority, reason=e.message, gateway_code=result.code,
            )

        if contract_id and contract_id != payment.contract_id:
            logger.warning(
                "Callback contract %s does not own authority %s (owner %s)",
                contract_id, authority, payment.contract_id,
            )

        if self.contracts.find_by_id(payment.contract_id) is not None:
            self.contracts.update_status(
                payment.contract_id,
                ContractStatus.PAID,
                paid_at=payment.paid_at,
                ref_id=result.ref_id,
            )
        else:
            logger.warning("Paid escrow %s has no contract %s in the store", payment.id, payment.contract_id)

        return VerificationOutcome(
            kind=VerificationKind.SUCCESS, authority=authority, ref_id=result.ref_id, gateway_code=result.code,
        )
