"""Pytest fixtures for the escrow ledger, reconciliation flow and API."""

import pytest
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.database.amount_cache import AmountCache
from src.database.contracts import ContractStore
from src.escrow.ledger import EscrowLedger
from src.escrow.models import Contract
from src.integrations.clients.mocks.payments import MockPaymentsClient
from src.integrations.policy.reconciliation import GatewayReconciliationFlow
from src.utils.escrow_config_loader import CallbackConfig, EscrowConfig, GatewayConfig
from src.utils.tokens import generate_token


@pytest.fixture
def config():
    return EscrowConfig(
        gateway=GatewayConfig(merchant_id="test-merchant", sandbox=True),
        callback=CallbackConfig(base_url="http://testserver"),
    )


@pytest.fixture
def contracts():
    """In-memory contract store for tests."""
    return ContractStore()


@pytest.fixture
def ledger(contracts):
    return EscrowLedger(contracts)


@pytest.fixture
def amount_cache():
    return AmountCache()


@pytest.fixture
def gateway():
    return MockPaymentsClient(start_pay_base="https://sandbox.gateway.test/pg/StartPay")


@pytest.fixture
def flow(gateway, ledger, contracts, amount_cache, config):
    return GatewayReconciliationFlow(gateway, ledger, contracts, amount_cache, config)


@pytest.fixture
def make_contract(contracts, ledger):
    """Add a contract to the store and, when it needs payment, open its escrow record."""

    def _make(payment_amount=100_000, payment_option="required", title="Website redesign"):
        contract = Contract(
            id=generate_token(),
            link_token=generate_token(),
            title=title,
            type="service",
            party1_name="Alice",
            party2_name="Bob",
            start_date="2026-01-01",
            text="Alice pays Bob for a website redesign.",
            payer_party="party1",
            payee_party="party2",
            payment_option=payment_option,
            payment_amount=payment_amount,
        )
        contracts.add(contract)
        if contract.requires_payment:
            ledger.create_pending(contract.id, payment_amount)
        return contract

    return _make


@pytest.fixture
def client(config, gateway):
    app = create_app(config=config, gateway=gateway, amount_cache=AmountCache())
    with TestClient(app) as test_client:
        yield test_client
