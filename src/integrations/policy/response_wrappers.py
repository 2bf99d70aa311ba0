from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class PaymentRequestResponseModel(BaseModel):
    code: Optional[int] = None
    authority: Optional[str] = None
    message: str = ""
    errors: Dict[str, Any] = Field(default_factory=dict)
    raw: Dict[str, Any] = Field(default_factory=dict)


class PaymentVerifyResponseModel(BaseModel):
    code: Optional[int] = None
    ref_id: Optional[str] = None
    message: str = ""
    card_pan: Optional[str] = None
    fee: Optional[int] = None
    errors: Dict[str, Any] = Field(default_factory=dict)
    raw: Dict[str, Any] = Field(default_factory=dict)


def normalize_payment_request_response(raw: Dict[str, Any]) -> PaymentRequestResponseModel:
    """
    Normalize a gateway "request payment" body.

    The gateway answers ``{"data": {...}, "errors": [...]}``; ``data`` is an
    empty list when the request was refused and ``errors`` then carries the
    refusal code and message.
    """
    data, errors = _split_envelope(raw)
    code = _coerce_int(_first_non_empty(data, "code", default=errors.get("code")))
    authority = _first_non_empty(data, "authority", default="")
    message = str(_first_non_empty(data, "message", default=errors.get("message") or ""))

    return _build_model(
        PaymentRequestResponseModel,
        {
            "code": code,
            "authority": str(authority) or None,
            "message": message,
            "errors": errors,
            "raw": raw,
        },
        raw,
    )


def normalize_payment_verify_response(raw: Dict[str, Any]) -> PaymentVerifyResponseModel:
    data, errors = _split_envelope(raw)
    code = _coerce_int(_first_non_empty(data, "code", default=errors.get("code")))
    ref_id = _first_non_empty(data, "ref_id", "refId", "reference_id", default="")
    message = str(_first_non_empty(data, "message", default=errors.get("message") or ""))
    fee = _first_non_empty(data, "fee", default="")

    return _build_model(
        PaymentVerifyResponseModel,
        {
            "code": code,
            "ref_id": str(ref_id) or None,
            "message": message,
            "card_pan": data.get("card_pan"),
            "fee": _coerce_int(fee),
            "errors": errors,
            "raw": raw,
        },
        raw,
    )


def extract_error_message(raw: Any, default: str) -> str:
    """Pull ``errors.message`` out of a gateway error body, if there is one."""
    if not isinstance(raw, dict):
        return default
    _, errors = _split_envelope(raw)
    return str(errors.get("message") or default)


def _split_envelope(raw: Dict[str, Any]) -> tuple:
    if not isinstance(raw, dict):
        raise IntegrationResponseError(f"Gateway response must be a JSON object; got {type(raw).__name__}.")
    data = raw.get("data")
    errors = raw.get("errors")
    return (
        data if isinstance(data, dict) else {},
        errors if isinstance(errors, dict) else {},
    )


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not None:
        return default
    raise IntegrationResponseError(f"Missing required field. Checked keys: {', '.join(keys)}", payload=data)


def _coerce_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise IntegrationResponseError(f"Invalid integer field in gateway response: {value!r}") from exc


def _build_model(model_type, payload: Dict[str, Any], raw: Dict[str, Any]):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", payload=raw) from exc
