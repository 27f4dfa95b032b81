"""Unit tests for the error hierarchy."""

from __future__ import annotations

import pytest

from keyward.errors import (
    DuplicateDigestError,
    KeyIssuanceFailedError,
    KeywardError,
    NotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error_cls", "code", "status"),
    [
        (ValidationError, "validation_error", 400),
        (UnauthorizedError, "unauthorized", 401),
        (NotFoundError, "not_found", 404),
        (DuplicateDigestError, "duplicate_digest", 409),
        (KeyIssuanceFailedError, "key_issuance_failed", 500),
        (StoreUnavailableError, "store_unavailable", 503),
    ],
)
def test_codes(error_cls, code, status):
    err = error_cls()

    assert isinstance(err, KeywardError)
    assert err.code == code
    assert err.status_code == status
    assert str(err) == error_cls.message


def test_retryable_flags():
    assert StoreUnavailableError().retryable is True
    assert DuplicateDigestError().retryable is True
    assert NotFoundError().retryable is False


def test_to_dict():
    err = NotFoundError("API key not found: key-1", details={"key_id": "key-1"})

    assert err.to_dict("req-1") == {
        "error": {
            "code": "not_found",
            "message": "API key not found: key-1",
            "request_id": "req-1",
            "details": {"key_id": "key-1"},
        }
    }
