"""
Integrations layer.
This package contains all code used to communicate with the external payment
gateway that holds escrow funds.

Key rule:
- Routers MUST NOT call the gateway directly.
- Routers call the reconciliation flow (src/integrations/policy), which calls
  a gateway client (src/integrations/clients).
- We use the MOCK client during development and tests and the REAL_HTTP
  client when a merchant id is configured.

Switching implementations:
- The selection of mock vs real clients happens in ONE place (src/api/dependencies.py).
"""

from .contracts.interfaces import (
    GatewayCode,
    GatewayPaymentRequest,
    GatewayPaymentResult,
    GatewayVerifyRequest,
    GatewayVerifyResult,
    PaymentGatewayClient,
)
from .contracts.payments import (
    CALLBACK_STATUS_OK,
    InitiationResult,
    VerificationKind,
    VerificationOutcome,
    classify_verify_code,
    validate_payment_request,
)

__all__ = [
    # interfaces
    "GatewayCode", "GatewayPaymentRequest", "GatewayPaymentResult",
    "GatewayVerifyRequest", "GatewayVerifyResult", "PaymentGatewayClient",
    # payments
    "CALLBACK_STATUS_OK", "InitiationResult", "VerificationKind",
    "VerificationOutcome", "classify_verify_code", "validate_payment_request",
]
