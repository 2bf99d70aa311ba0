"""
In-memory contract store.

Holds contract records for the lifetime of the process, indexed by id and by
share-link token. Not durable; a restart drops everything.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.escrow.errors import NotFoundError
from src.escrow.models import Contract, ContractStatus


class ContractStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._contracts: Dict[str, Contract] = {}
        self._ids_by_link_token: Dict[str, str] = {}

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def add(self, contract: Contract) -> Contract:
        with self._lock:
            self._contracts[contract.id] = contract
            self._ids_by_link_token[contract.link_token] = contract.id
            return contract

    def update_status(self, contract_id: str, status: ContractStatus, **fields: Any) -> Contract:
        with self._lock:
            contract = self._require(contract_id)
            contract.status = status
            if status == ContractStatus.PAID and "paid_at" not in fields:
                fields["paid_at"] = datetime.utcnow()
            if status == ContractStatus.COMPLETED and "completed_at" not in fields:
                fields["completed_at"] = datetime.utcnow()
            return self._apply(contract, fields)

    def update_fields(self, contract_id: str, **fields: Any) -> Contract:
        with self._lock:
            return self._apply(self._require(contract_id), fields)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def find_by_id(self, contract_id: str) -> Optional[Contract]:
        return self._contracts.get(contract_id)

    def find_by_link_token(self, link_token: str) -> Optional[Contract]:
        contract_id = self._ids_by_link_token.get(link_token)
        if not contract_id:
            return None
        return self._contracts.get(contract_id)

    def list(self) -> List[Contract]:
        with self._lock:
            return list(self._contracts.values())

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _require(self, contract_id: str) -> Contract:
        contract = self._contracts.get(contract_id)
        if contract is None:
            raise NotFoundError(f"Contract '{contract_id}' not found.")
        return contract

    @staticmethod
    def _apply(contract: Contract, fields: Dict[str, Any]) -> Contract:
        for key, value in fields.items():
            if not hasattr(contract, key):
                raise AttributeError(f"Contract has no field '{key}'")
            setattr(contract, key, value)
        return contract
