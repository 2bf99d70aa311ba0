import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from src.api.dependencies import EscrowServices, get_services
from src.api.verification_pages import render_internal_error, render_outcome
from src.escrow.errors import NotFoundError
from src.escrow.models import PayerInfo

logger = logging.getLogger(__name__)

api = APIRouter()
payments_api = api


class PaymentInitiateRequest(BaseModel):
    payer_name: Optional[str] = Field(default=None, alias="payerName")
    payer_email: Optional[str] = Field(default=None, alias="payerEmail")
    payer_mobile: Optional[str] = Field(default=None, alias="payerMobile")

    model_config = {"populate_by_name": True}


@api.post("/contracts/{link_token}/payment", tags=["Payments"])
async def initiate_payment(
    link_token: str,
    request: Optional[PaymentInitiateRequest] = None,
    services: EscrowServices = Depends(get_services),
):
    contract = services.contracts.find_by_link_token(link_token)
    if contract is None:
        raise NotFoundError("Contract not found.")

    payer = PayerInfo()
    if request is not None:
        payer = PayerInfo(name=request.payer_name, email=request.payer_email, mobile=request.payer_mobile)
    result = await services.flow.initiate(contract, payer)
    return {
        "success": True,
        "payment_url": result.payment_url,
        "payment_id": result.payment_id,
    }


@api.get("/payment-verify", tags=["Payments"], response_class=HTMLResponse)
async def verify_payment(
    authority: Optional[str] = Query(default=None, alias="Authority"),
    status: Optional[str] = Query(default=None, alias="Status"),
    authority_lower: Optional[str] = Query(default=None, alias="authority"),
    status_lower: Optional[str] = Query(default=None, alias="status"),
    contract_id: Optional[str] = Query(default=None, alias="contractId"),
    services: EscrowServices = Depends(get_services),
):
    """
    Gateway callback. Always answers with an HTML notice page, never JSON,
    since the payer's browser is the one following the redirect.
    """
    sandbox = services.config.gateway.sandbox
    try:
        outcome = await services.flow.verify(
            authority or authority_lower or "",
            status or status_lower or "",
            contract_id,
        )
        status_code, page = render_outcome(outcome, sandbox=sandbox)
    except Exception:
        logger.exception("Payment verification error")
        status_code, page = render_internal_error(sandbox=sandbox)
    return HTMLResponse(content=page, status_code=status_code)


@api.get("/escrow-payments", tags=["Escrow"])
async def list_escrow_payments(services: EscrowServices = Depends(get_services)):
    return {
        "success": True,
        "payments": [p.to_dict() for p in services.ledger.list()],
    }


@api.post("/escrow/{payment_id}/release", tags=["Escrow"])
async def release_escrow_payment(payment_id: str, services: EscrowServices = Depends(get_services)):
    payment = services.ledger.release(payment_id)
    return {"success": True, "payment": payment.to_dict()}
