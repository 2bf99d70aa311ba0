"""
Contract endpoints: create, look up, list, sign.

Creating a contract that requires payment also opens its pending escrow
payment, so the payer can start paying straight from the share link.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, field_validator

from src.api.dependencies import EscrowServices, get_services
from src.escrow.errors import InvalidRequestError, InvalidStateError, NotFoundError
from src.escrow.models import PAYMENT_OPTION_NONE, Contract, ContractStatus
from src.utils.tokens import generate_code, generate_token

logger = logging.getLogger(__name__)

router = APIRouter()


class ContractCreateRequest(BaseModel):
    title: str = ""
    type: str = ""
    party1_name: str = Field(default="", alias="party1Name")
    party2_name: str = Field(default="", alias="party2Name")
    party1_email: Optional[str] = Field(default=None, alias="party1Email")
    party2_email: Optional[str] = Field(default=None, alias="party2Email")
    start_date: str = Field(default="", alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    text: str = ""
    payment_option: str = Field(default=PAYMENT_OPTION_NONE, alias="paymentOption")
    payment_amount: int = Field(default=0, ge=0, alias="paymentAmount")
    payment_deadline: Optional[str] = Field(default=None, alias="paymentDeadline")
    payment_description: Optional[str] = Field(default=None, alias="paymentDescription")
    payer_party: str = Field(default="", alias="payerParty")
    payee_party: str = Field(default="", alias="payeeParty")

    model_config = {"populate_by_name": True}

    @field_validator("payment_amount", mode="before")
    @classmethod
    def _blank_amount_is_zero(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        return value


class SignRequest(BaseModel):
    signer_name: str = Field(default="", alias="signerName")
    signer_email: Optional[str] = Field(default=None, alias="signerEmail")
    signature: Optional[str] = None

    model_config = {"populate_by_name": True}


_REQUIRED_FIELDS = ("title", "type", "party1_name", "party2_name", "start_date", "text", "payer_party", "payee_party")


def _share_link(request: Request, link_token: str, party: str) -> str:
    base = str(request.base_url).rstrip("/")
    return f"{base}/contract?id={link_token}&party={party}"


@router.post("/contracts", tags=["Contracts"])
async def create_contract(
    body: ContractCreateRequest,
    request: Request,
    services: EscrowServices = Depends(get_services),
):
    missing = [name for name in _REQUIRED_FIELDS if not str(getattr(body, name) or "").strip()]
    if missing:
        raise InvalidRequestError(f"Please fill in all required fields: {', '.join(missing)}")
    if body.payer_party == body.payee_party:
        raise InvalidRequestError("Payer and payee parties must be different.")

    contract = Contract(
        id=generate_token(),
        link_token=generate_token(),
        title=body.title,
        type=body.type,
        party1_name=body.party1_name,
        party2_name=body.party2_name,
        party1_email=body.party1_email,
        party2_email=body.party2_email,
        start_date=body.start_date,
        end_date=body.end_date,
        text=body.text,
        payment_option=body.payment_option,
        payment_amount=body.payment_amount,
        payment_deadline=body.payment_deadline,
        payment_description=body.payment_description,
        payer_party=body.payer_party,
        payee_party=body.payee_party,
    )
    services.contracts.add(contract)
    logger.info("Contract %s created (payment_option=%s amount=%s)", contract.id, contract.payment_option, contract.payment_amount)

    escrow_payment = None
    if contract.requires_payment:
        escrow_payment = services.ledger.create_pending(contract.id, contract.payment_amount)

    return {
        "success": True,
        "contract": contract.to_dict(),
        "escrow_payment": escrow_payment.to_dict() if escrow_payment else None,
        "link_payer": _share_link(request, contract.link_token, "payer"),
        "link_payee": _share_link(request, contract.link_token, "payee"),
    }


@router.get("/contracts", tags=["Contracts"])
async def list_contracts(services: EscrowServices = Depends(get_services)):
    return {"success": True, "contracts": [c.to_dict() for c in services.contracts.list()]}


@router.get("/contracts/id/{contract_id}", tags=["Contracts"])
async def get_contract_by_id(contract_id: str, services: EscrowServices = Depends(get_services)):
    contract = services.contracts.find_by_id(contract_id)
    if contract is None:
        raise NotFoundError("Contract not found.")
    return {"success": True, "contract": contract.to_dict()}


@router.get("/contracts/{link_token}", tags=["Contracts"])
async def get_contract(link_token: str, services: EscrowServices = Depends(get_services)):
    contract = services.contracts.find_by_link_token(link_token)
    if contract is None:
        raise NotFoundError("Contract not found.")
    escrow_payment = services.ledger.find_by_contract(contract.id)
    return {
        "success": True,
        "contract": contract.to_dict(),
        "escrow_payment": escrow_payment.to_dict() if escrow_payment else None,
    }


@router.post("/contracts/{link_token}/sign", tags=["Contracts"])
async def sign_contract(link_token: str, body: SignRequest, services: EscrowServices = Depends(get_services)):
    contract = services.contracts.find_by_link_token(link_token)
    if contract is None:
        raise NotFoundError("Contract not found.")
    if contract.status in (ContractStatus.PAID, ContractStatus.COMPLETED):
        raise InvalidStateError(f"Contract is already {contract.status.value}.")

    contract = services.contracts.update_status(
        contract.id,
        ContractStatus.SIGNED,
        signed_by=body.signer_name,
        signed_at=datetime.utcnow(),
        signature=body.signature,
        signature_code=generate_code(),
    )
    logger.info("Contract %s signed by %s", contract.id, body.signer_name)
    return {"success": True, "contract": contract.to_dict(), "signature_code": contract.signature_code}
