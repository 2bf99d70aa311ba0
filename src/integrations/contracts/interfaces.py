from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class GatewayCode(IntEnum):
    SUCCESS = 100
    ALREADY_VERIFIED = 101


# ---------------------------------------------------------------------------
# Shared data models
# ---------------------------------------------------------------------------

@dataclass
class GatewayPaymentRequest:
    merchant_id: str
    amount: int
    description: str
    callback_url: str
    currency: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GatewayPaymentResult:
    code: Optional[int]
    authority: Optional[str] = None
    message: str = ""
    errors: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def accepted(self) -> bool:
        return self.code == GatewayCode.SUCCESS and bool(self.authority)


@dataclass
class GatewayVerifyRequest:
    merchant_id: str
    amount: int
    authority: str


@dataclass
class GatewayVerifyResult:
    code: Optional[int]
    ref_id: Optional[str] = None
    message: str = ""
    card_pan: Optional[str] = None
    fee: Optional[int] = None
    errors: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Abstract gateway interface
# ---------------------------------------------------------------------------

class PaymentGatewayClient(ABC):
    """Every payment gateway client (mock or real) must implement this interface."""

    @abstractmethod
    async def request_payment(self, request: GatewayPaymentRequest) -> GatewayPaymentResult:
        """Open a payment at the gateway and obtain an authority for it."""

    @abstractmethod
    async def verify_payment(self, request: GatewayVerifyRequest) -> GatewayVerifyResult:
        """Confirm a completed payment; must be called once the payer returns."""

    @abstractmethod
    def start_pay_url(self, authority: str) -> str:
        """URL the payer is redirected to in order to complete the payment."""

    async def aclose(self) -> None:
        """Release any held resources. Default: nothing to release."""
        return None


__all__: List[str] = [
    "GatewayCode",
    "GatewayPaymentRequest",
    "GatewayPaymentResult",
    "GatewayVerifyRequest",
    "GatewayVerifyResult",
    "PaymentGatewayClient",
]
