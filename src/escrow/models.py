from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ContractStatus(str, Enum):
    DRAFT = "draft"
    SIGNED = "signed"
    PAID = "paid"
    COMPLETED = "completed"


class EscrowStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    RELEASED = "released"


PAYMENT_OPTION_NONE = "none"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class Contract:
    id: str
    link_token: str
    title: str
    type: str
    party1_name: str
    party2_name: str
    start_date: str                      # ISO format: YYYY-MM-DD
    text: str
    payer_party: str
    payee_party: str
    payment_option: str = PAYMENT_OPTION_NONE
    payment_amount: int = 0              # minor currency unit
    party1_email: Optional[str] = None
    party2_email: Optional[str] = None
    end_date: Optional[str] = None
    payment_deadline: Optional[str] = None
    payment_description: Optional[str] = None
    status: ContractStatus = ContractStatus.DRAFT
    created_at: datetime = field(default_factory=datetime.utcnow)
    signed_by: Optional[str] = None
    signed_at: Optional[datetime] = None
    signature: Optional[str] = None
    signature_code: Optional[str] = None
    paid_at: Optional[datetime] = None
    ref_id: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def requires_payment(self) -> bool:
        return self.payment_option != PAYMENT_OPTION_NONE and self.payment_amount > 0

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


@dataclass
class PayerInfo:
    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None


@dataclass
class EscrowPayment:
    id: str
    contract_id: str
    amount: int
    authority: str = ""
    status: EscrowStatus = EscrowStatus.PENDING
    payer_name: Optional[str] = None
    payer_email: Optional[str] = None
    payer_mobile: Optional[str] = None
    ref_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    paid_at: Optional[datetime] = None
    released_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


def _serialize(data: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        out[key] = value
    return out
