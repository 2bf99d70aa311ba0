"""
Contracts (data models).

This folder defines the request/response shapes for the payment gateway
integration. Both mock and real HTTP clients use these contracts, and the
reconciliation flow only ever sees these shapes, never raw gateway JSON.
"""
