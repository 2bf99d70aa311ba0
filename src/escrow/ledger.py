"""
Escrow ledger.

One escrow payment per contract, moving strictly forward:

    pending --(attach_authority)--> pending --(mark_paid)--> paid --(release)--> released

No transition removes or reverts a record. Every mutation runs under a single
re-entrant lock, so two concurrent releases cannot both observe ``paid``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from src.database.contracts import ContractStore
from src.escrow.errors import InvalidRequestError, InvalidStateError, NotFoundError
from src.escrow.models import ContractStatus, EscrowPayment, EscrowStatus, PayerInfo
from src.utils.tokens import generate_token

logger = logging.getLogger(__name__)


class EscrowLedger:
    def __init__(self, contracts: ContractStore) -> None:
        self._contracts = contracts
        self._lock = threading.RLock()
        # Insertion-ordered; dicts keep order so list() is a plain snapshot.
        self._payments: Dict[str, EscrowPayment] = {}
        self._ids_by_contract: Dict[str, str] = {}
        self._ids_by_authority: Dict[str, str] = {}

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #
    def create_pending(self, contract_id: str, amount: int) -> EscrowPayment:
        if amount is None or int(amount) <= 0:
            raise InvalidRequestError(f"Escrow amount must be greater than zero; got {amount!r}.")

        with self._lock:
            if contract_id in self._ids_by_contract:
                raise InvalidStateError(f"Contract '{contract_id}' already has an escrow payment.")

            payment = EscrowPayment(id=generate_token(), contract_id=contract_id, amount=int(amount))
            self._payments[payment.id] = payment
            self._ids_by_contract[contract_id] = payment.id

        logger.info("Escrow payment %s created for contract %s amount=%s", payment.id, contract_id, amount)
        return payment

    def attach_authority(self, contract_id: str, authority: str, payer: Optional[PayerInfo] = None) -> EscrowPayment:
        if not authority:
            raise InvalidRequestError("authority is required")

        with self._lock:
            payment = self._require_by_contract(contract_id)
            if payment.status != EscrowStatus.PENDING:
                raise InvalidStateError(
                    f"Escrow payment {payment.id} is {payment.status.value}; cannot attach a new authority."
                )

            if payment.authority and payment.authority != authority:
                # A retried initiation supersedes the earlier attempt.
                self._ids_by_authority.pop(payment.authority, None)
                logger.info("Escrow payment %s: replacing authority %s", payment.id, payment.authority)

            payment.authority = authority
            self._ids_by_authority[authority] = payment.id
            if payer is not None:
                payment.payer_name = payer.name
                payment.payer_email = payer.email
                payment.payer_mobile = payer.mobile

        logger.info("Escrow payment %s bound to authority %s", payment.id, authority)
        return payment

    def mark_paid(self, authority: str, ref_id: str) -> EscrowPayment:
        with self._lock:
            payment = self._require_by_authority(authority)
            if payment.status != EscrowStatus.PENDING:
                raise InvalidStateError(f"Escrow payment {payment.id} is already {payment.status.value}.")

            payment.status = EscrowStatus.PAID
            payment.ref_id = ref_id
            payment.paid_at = datetime.utcnow()

        logger.info("Escrow payment %s paid (ref_id=%s)", payment.id, ref_id)
        return payment

    def note_ref_id(self, authority: str, ref_id: Optional[str]) -> Optional[EscrowPayment]:
        """Keep a gateway reference id on the record without changing its status."""
        if not ref_id:
            return None
        with self._lock:
            payment = self.find_by_authority(authority)
            if payment is None:
                return None
            if not payment.ref_id:
                payment.ref_id = ref_id
            return payment

    def release(self, payment_id: str) -> EscrowPayment:
        with self._lock:
            payment = self._payments.get(payment_id)
            if payment is None:
                raise NotFoundError(f"Escrow payment '{payment_id}' not found.")
            if payment.status != EscrowStatus.PAID:
                raise InvalidStateError(
                    f"Escrow payment {payment_id} is {payment.status.value}; only paid funds can be released."
                )
            if self._contracts.find_by_id(payment.contract_id) is None:
                raise NotFoundError(f"Contract '{payment.contract_id}' for escrow payment {payment_id} not found.")

            payment.status = EscrowStatus.RELEASED
            payment.released_at = datetime.utcnow()
            self._contracts.update_status(
                payment.contract_id,
                ContractStatus.COMPLETED,
                completed_at=payment.released_at,
            )

        logger.info("Escrow payment %s released for contract %s", payment_id, payment.contract_id)
        return payment

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def get(self, payment_id: str) -> Optional[EscrowPayment]:
        return self._payments.get(payment_id)

    def find_by_contract(self, contract_id: str) -> Optional[EscrowPayment]:
        payment_id = self._ids_by_contract.get(contract_id)
        return self._payments.get(payment_id) if payment_id else None

    def find_by_authority(self, authority: str) -> Optional[EscrowPayment]:
        payment_id = self._ids_by_authority.get(authority)
        return self._payments.get(payment_id) if payment_id else None

    def list(self) -> List[EscrowPayment]:
        with self._lock:
            return list(self._payments.values())

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _require_by_contract(self, contract_id: str) -> EscrowPayment:
        payment = self.find_by_contract(contract_id)
        if payment is None:
            raise NotFoundError(f"No escrow payment for contract '{contract_id}'.")
        return payment

    def _require_by_authority(self, authority: str) -> EscrowPayment:
        payment = self.find_by_authority(authority)
        if payment is None:
            raise NotFoundError(f"No escrow payment for authority '{authority}'.")
        return payment
