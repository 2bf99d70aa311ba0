"""
Service container for the escrow API.

Everything with shared mutable state (contract store, ledger, amount cache,
gateway client) is built once by the app lifespan and reached by routers
through ``get_services``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from src.database.amount_cache import AmountCache
from src.database.contracts import ContractStore
from src.escrow.ledger import EscrowLedger
from src.integrations.clients.mocks.payments import MockPaymentsClient
from src.integrations.clients.real_http.payments import RealPaymentsClient
from src.integrations.contracts.interfaces import PaymentGatewayClient
from src.integrations.policy.reconciliation import GatewayReconciliationFlow
from src.utils.escrow_config_loader import EscrowConfig

logger = logging.getLogger(__name__)


@dataclass
class EscrowServices:
    config: EscrowConfig
    contracts: ContractStore
    ledger: EscrowLedger
    amount_cache: object
    gateway: PaymentGatewayClient
    flow: GatewayReconciliationFlow

    async def aclose(self) -> None:
        await self.gateway.aclose()
        self.amount_cache.close()
        logger.info("Escrow services shut down")


def _select_gateway_client(config: EscrowConfig) -> PaymentGatewayClient:
    if config.gateway.mode == "real":
        return RealPaymentsClient(config.gateway)
    return MockPaymentsClient(start_pay_base=f"{config.gateway.base_url}{config.gateway.start_pay_path}")


def _select_amount_cache(config: EscrowConfig):
    if config.cache.backend == "redis" and config.cache.redis_url:
        from src.database.amount_cache_real import RedisAmountCache

        return RedisAmountCache(url=config.cache.redis_url, ttl=config.cache.ttl_seconds)
    return AmountCache()


def build_services(
    config: EscrowConfig,
    gateway: Optional[PaymentGatewayClient] = None,
    amount_cache=None,
) -> EscrowServices:
    contracts = ContractStore()
    ledger = EscrowLedger(contracts)
    cache = amount_cache if amount_cache is not None else _select_amount_cache(config)
    client = gateway if gateway is not None else _select_gateway_client(config)
    flow = GatewayReconciliationFlow(client, ledger, contracts, cache, config)
    logger.info(
        "Escrow services ready (gateway=%s cache=%s)",
        type(client).__name__, type(cache).__name__,
    )
    return EscrowServices(
        config=config,
        contracts=contracts,
        ledger=ledger,
        amount_cache=cache,
        gateway=client,
        flow=flow,
    )


def get_services(request: Request) -> EscrowServices:
    """Dependency for the escrow service container"""
    return request.app.state.services
