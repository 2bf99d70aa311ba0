#!/usr/bin/env python3
"""
Run a full escrow lifecycle against the mock gateway and print each stage:
contract → pending escrow → initiate → verify callback → release.

Usage (from repo root):
  python scripts/run_escrow_demo.py
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.api.dependencies import build_services
from src.escrow.models import Contract, PayerInfo
from src.utils.escrow_config_loader import load_escrow_config
from src.utils.tokens import generate_token


def setup_logging():
    """Log to terminal at INFO so every stage is visible."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def print_stage(title: str, data: dict | list | str):
    """Print a stage header and data to the terminal."""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)
    print()


async def main():
    setup_logging()
    cfg = load_escrow_config()
    cfg.gateway.mode = "mock"
    services = build_services(cfg)

    contract = Contract(
        id=generate_token(),
        link_token=generate_token(),
        title="Demo website build",
        type="service",
        party1_name="Alice",
        party2_name="Bob",
        start_date="2026-01-01",
        text="Alice pays Bob 100,000 on delivery.",
        payer_party="party1",
        payee_party="party2",
        payment_option="required",
        payment_amount=100_000,
    )
    services.contracts.add(contract)
    payment = services.ledger.create_pending(contract.id, contract.payment_amount)
    print_stage("CONTRACT CREATED", {"contract": contract.to_dict(), "escrow": payment.to_dict()})

    initiated = await services.flow.initiate(contract, PayerInfo(name="Alice", email="alice@example.com"))
    print_stage("PAYMENT INITIATED", initiated.__dict__)

    outcome = await services.flow.verify(initiated.authority, "OK", contract.id)
    print_stage("VERIFICATION CALLBACK", {"kind": outcome.kind.value, "ref_id": outcome.ref_id})

    replay = await services.flow.verify(initiated.authority, "OK", contract.id)
    print_stage("REPLAYED CALLBACK", {"kind": replay.kind.value})

    released = services.ledger.release(initiated.payment_id)
    print_stage("ESCROW RELEASED", {
        "escrow": released.to_dict(),
        "contract_status": services.contracts.find_by_id(contract.id).status.value,
    })

    await services.aclose()


if __name__ == "__main__":
    asyncio.run(main())
