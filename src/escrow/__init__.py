"""
Escrow core.

Domain models and errors for escrowed contract payments. The ledger lives in
src/escrow/ledger.py, gateway round-trips in
src/integrations/policy/reconciliation.py and HTTP wiring in src/api.
"""

from .errors import (
    EscrowError,
    GatewayRejectedError,
    GatewayUnavailableError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from .models import Contract, ContractStatus, EscrowPayment, EscrowStatus, PayerInfo

__all__ = [
    "EscrowError", "GatewayRejectedError", "GatewayUnavailableError",
    "InvalidRequestError", "InvalidStateError", "NotFoundError",
    "Contract", "ContractStatus", "EscrowPayment", "EscrowStatus", "PayerInfo",
]
