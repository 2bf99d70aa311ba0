"""Error taxonomy for the escrow core.

Every error carries the HTTP status the boundary layer should answer with and
a short machine-readable code.
"""

from typing import Any, Dict, Optional


class EscrowError(Exception):
    status_code = 400
    code = "escrow_error"

    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message, "code": self.code}
        if self.payload:
            body["errors"] = self.payload
        return body


class InvalidRequestError(EscrowError):
    status_code = 400
    code = "invalid_request"


class NotFoundError(EscrowError):
    status_code = 404
    code = "not_found"


class InvalidStateError(EscrowError):
    status_code = 409
    code = "invalid_state"


class GatewayRejectedError(EscrowError):
    """The gateway answered, but refused the request."""

    status_code = 400
    code = "gateway_rejected"

    def __init__(
        self,
        message: str,
        *,
        gateway_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, payload=payload)
        self.gateway_code = gateway_code


class GatewayUnavailableError(EscrowError):
    """The gateway could not be reached or answered with a transport-level error."""

    code = "gateway_unavailable"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, payload=payload)
        self.status_code = status_code or 502
