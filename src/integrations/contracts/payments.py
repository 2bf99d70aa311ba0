from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .interfaces import GatewayCode, GatewayPaymentRequest, GatewayVerifyResult

"""
Payment contracts.

Defines the results the reconciliation flow hands back to the API layer:
- the outcome of initiating a payment
- the outcome of a verification callback

Both the mock and the real gateway clients feed these through the same
reconciliation flow, so the API layer never sees gateway-specific payloads.
"""

CALLBACK_STATUS_OK = "OK"


# ---------------------------------------------------------------------------
# Flow results
# ---------------------------------------------------------------------------


@dataclass
class InitiationResult:
    payment_url: str
    payment_id: str
    authority: str


class VerificationKind(str, Enum):
    SUCCESS = "success"
    ALREADY_VERIFIED = "already_verified"
    CANCELLED = "cancelled"
    AMOUNT_NOT_FOUND = "amount_not_found"
    FAILED = "failed"


@dataclass
class VerificationOutcome:
    kind: VerificationKind
    authority: str
    ref_id: Optional[str] = None
    reason: Optional[str] = None
    gateway_code: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def ok(self) -> bool:
        return self.kind in {VerificationKind.SUCCESS, VerificationKind.ALREADY_VERIFIED}


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def validate_payment_request(request: GatewayPaymentRequest) -> List[str]:
    """
    Return a list of validation errors.
    Empty list means the request is valid.
    """
    errors: List[str] = []

    if request.amount <= 0:
        errors.append("amount must be greater than zero")
    if not request.description:
        errors.append("description is required")
    if not request.callback_url:
        errors.append("callback_url is required")

    return errors


def classify_verify_code(result: GatewayVerifyResult) -> VerificationKind:
    """Map a gateway verify code onto the outcome it produces."""
    if result.code == GatewayCode.SUCCESS:
        return VerificationKind.SUCCESS
    if result.code == GatewayCode.ALREADY_VERIFIED:
        return VerificationKind.ALREADY_VERIFIED
    return VerificationKind.FAILED
