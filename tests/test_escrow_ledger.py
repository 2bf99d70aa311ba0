"""Tests for the escrow ledger state machine."""

import threading

import pytest

from src.escrow.errors import InvalidRequestError, InvalidStateError, NotFoundError
from src.escrow.models import ContractStatus, EscrowStatus, PayerInfo


def test_create_pending_opens_single_record(make_contract, ledger):
    contract = make_contract(payment_amount=100_000)

    payments = ledger.list()
    assert len(payments) == 1
    payment = payments[0]
    assert payment.contract_id == contract.id
    assert payment.amount == 100_000
    assert payment.status == EscrowStatus.PENDING
    assert payment.authority == ""
    assert payment.ref_id is None


@pytest.mark.parametrize("amount", [0, -5])
def test_create_pending_rejects_non_positive_amount(ledger, amount):
    with pytest.raises(InvalidRequestError):
        ledger.create_pending("C1", amount)
    assert ledger.list() == []


def test_create_pending_refuses_second_record_for_contract(ledger):
    ledger.create_pending("C1", 500)
    with pytest.raises(InvalidStateError):
        ledger.create_pending("C1", 700)
    assert [p.amount for p in ledger.list()] == [500]


def test_attach_authority_keeps_pending_and_records_payer(make_contract, ledger):
    contract = make_contract()
    payer = PayerInfo(name="Alice", email="alice@example.com", mobile="09120000000")

    payment = ledger.attach_authority(contract.id, "A1", payer)

    assert payment.status == EscrowStatus.PENDING
    assert payment.authority == "A1"
    assert payment.payer_name == "Alice"
    assert payment.payer_email == "alice@example.com"
    assert payment.payer_mobile == "09120000000"
    assert ledger.find_by_authority("A1") is payment


def test_attach_authority_unknown_contract(ledger):
    with pytest.raises(NotFoundError):
        ledger.attach_authority("missing", "A1")


def test_reattaching_replaces_stale_authority(make_contract, ledger):
    contract = make_contract()
    ledger.attach_authority(contract.id, "A1")
    payment = ledger.attach_authority(contract.id, "A2")

    assert payment.authority == "A2"
    assert ledger.find_by_authority("A1") is None
    assert ledger.find_by_authority("A2") is payment


def test_mark_paid_sets_ref_id_and_timestamp(make_contract, ledger):
    contract = make_contract()
    ledger.attach_authority(contract.id, "A1")

    payment = ledger.mark_paid("A1", "R1")

    assert payment.status == EscrowStatus.PAID
    assert payment.ref_id == "R1"
    assert payment.paid_at is not None


def test_mark_paid_unknown_authority(ledger):
    with pytest.raises(NotFoundError):
        ledger.mark_paid("nope", "R1")


def test_mark_paid_twice_is_rejected(make_contract, ledger):
    contract = make_contract()
    ledger.attach_authority(contract.id, "A1")
    first = ledger.mark_paid("A1", "R1")
    paid_at = first.paid_at

    with pytest.raises(InvalidStateError):
        ledger.mark_paid("A1", "R2")
    assert first.ref_id == "R1"
    assert first.paid_at == paid_at


def test_release_paid_payment_completes_contract(make_contract, ledger, contracts):
    contract = make_contract()
    ledger.attach_authority(contract.id, "A1")
    payment = ledger.mark_paid("A1", "R1")

    released = ledger.release(payment.id)

    assert released.status == EscrowStatus.RELEASED
    assert released.released_at is not None
    stored = contracts.find_by_id(contract.id)
    assert stored.status == ContractStatus.COMPLETED
    assert stored.completed_at == released.released_at


def test_release_pending_payment_is_rejected(make_contract, ledger, contracts):
    contract = make_contract()
    payment = ledger.find_by_contract(contract.id)

    with pytest.raises(InvalidStateError):
        ledger.release(payment.id)
    assert payment.status == EscrowStatus.PENDING
    assert payment.released_at is None
    assert contracts.find_by_id(contract.id).status == ContractStatus.DRAFT


def test_release_twice_is_rejected(make_contract, ledger):
    contract = make_contract()
    ledger.attach_authority(contract.id, "A1")
    payment = ledger.mark_paid("A1", "R1")
    ledger.release(payment.id)
    released_at = payment.released_at

    with pytest.raises(InvalidStateError):
        ledger.release(payment.id)
    assert payment.status == EscrowStatus.RELEASED
    assert payment.released_at == released_at


def test_release_unknown_payment(ledger):
    with pytest.raises(NotFoundError):
        ledger.release("missing")


def test_release_without_contract_keeps_payment_paid(ledger):
    ledger.create_pending("C-gone", 500)
    ledger.attach_authority("C-gone", "A1")
    payment = ledger.mark_paid("A1", "R1")

    with pytest.raises(NotFoundError):
        ledger.release(payment.id)
    assert payment.status == EscrowStatus.PAID
    assert payment.released_at is None


def test_concurrent_release_only_succeeds_once(make_contract, ledger):
    contract = make_contract()
    ledger.attach_authority(contract.id, "A1")
    payment = ledger.mark_paid("A1", "R1")

    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            ledger.release(payment.id)
            results.append("released")
        except InvalidStateError:
            results.append("rejected")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("released") == 1
    assert results.count("rejected") == 7


def test_note_ref_id_does_not_overwrite(make_contract, ledger):
    contract = make_contract()
    ledger.attach_authority(contract.id, "A1")
    ledger.note_ref_id("A1", "R1")
    ledger.note_ref_id("A1", "R2")

    payment = ledger.find_by_authority("A1")
    assert payment.ref_id == "R1"
    assert payment.status == EscrowStatus.PENDING
    assert ledger.note_ref_id("unknown", "R3") is None


def test_list_preserves_insertion_order(ledger):
    for i in range(5):
        ledger.create_pending(f"C{i}", 100 + i)
    assert [p.contract_id for p in ledger.list()] == [f"C{i}" for i in range(5)]
