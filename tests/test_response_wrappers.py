import pytest

from src.integrations.policy.response_wrappers import (
    IntegrationResponseError,
    extract_error_message,
    normalize_payment_request_response,
    normalize_payment_verify_response,
)


def test_request_response_success():
    model = normalize_payment_request_response(
        {"data": {"code": 100, "message": "Success", "authority": "A000123", "fee": 1000}, "errors": []}
    )
    assert model.code == 100
    assert model.authority == "A000123"
    assert model.errors == {}


def test_request_response_error_envelope():
    model = normalize_payment_request_response({"data": [], "errors": {"code": -12, "message": "Too many attempts"}})
    assert model.code == -12
    assert model.authority is None
    assert model.message == "Too many attempts"


def test_verify_response_already_verified_keeps_ref_id():
    model = normalize_payment_verify_response({"data": {"code": "101", "message": "Verified", "ref_id": 9876}})
    assert model.code == 101
    assert model.ref_id == "9876"
    assert model.fee is None


@pytest.mark.parametrize(
    "raw",
    [
        {"data": {"message": "no code"}, "errors": []},
        {"data": {"code": "abc"}},
        ["not", "an", "object"],
    ],
)
def test_malformed_responses_raise(raw):
    with pytest.raises(IntegrationResponseError):
        normalize_payment_verify_response(raw)


def test_extract_error_message_falls_back():
    assert extract_error_message({"errors": {"message": "bad merchant"}}, "default") == "bad merchant"
    assert extract_error_message({"errors": []}, "default") == "default"
    assert extract_error_message(None, "default") == "default"
