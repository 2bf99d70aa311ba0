"""
Real HTTP gateway client.

Talks to the payment gateway's v4 JSON endpoints with httpx. Picked by
src/api/dependencies.py when the gateway mode is "real" (a merchant id is
configured); every response passes through the wrappers in
src/integrations/policy/response_wrappers.py before the flow sees it.
"""

from .payments import RealPaymentsClient

__all__ = ["RealPaymentsClient"]
