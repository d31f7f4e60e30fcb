import pytest

from reconciliation.kernel.errors import InvalidInputError, PersistenceError, ReconciliationError


def test_rejects_malformed_codes():
    with pytest.raises(ValueError):
        ReconciliationError(code="Not-A-Code", message="x")


def test_public_dict_includes_request_id_and_meta():
    err = PersistenceError(meta={"operation": "insert"})

    assert err.status_code == 503
    assert err.to_public_dict(request_id="req_1") == {
        "detail": "Contact store error",
        "code": "persistence.error",
        "request_id": "req_1",
        "meta": {"operation": "insert"},
    }


def test_invalid_input_defaults():
    err = InvalidInputError()

    assert err.status_code == 400
    assert err.code == "request.invalid_input"
    assert "email or phoneNumber" in str(err)
    assert err.to_public_dict(request_id=None) == {
        "detail": err.message,
        "code": "request.invalid_input",
    }
