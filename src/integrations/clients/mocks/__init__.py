"""
Mock gateway client.

Returns fake (but realistic) gateway answers without any network call.
Used when no merchant id is configured and throughout the test suite;
scripting helpers let a test pick the next authority or reference id.
"""

from .payments import MockPaymentsClient

__all__ = ["MockPaymentsClient"]
