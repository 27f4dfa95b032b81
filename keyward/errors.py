"""Keyward error types.

Error codes are stable strings for programmatic handling. ``status_code``
is the HTTP status the web layer maps each error to.

An invalid credential is not an error at the service level:
``ApiKeyService.validate_api_key`` returns ``None``. Only the request
authentication dependency turns that into ``UnauthorizedError``.
"""

from __future__ import annotations

from typing import Any


class KeywardError(Exception):
    """Base error for all Keyward exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"
    status_code: int = 500
    retryable: bool = False

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        """Render the JSON error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "request_id": request_id,
                "details": self.details,
            }
        }


class ValidationError(KeywardError):
    """Request validation error (400)."""

    code = "validation_error"
    message = "Validation error"
    status_code = 400


class UnauthorizedError(KeywardError):
    """Authentication required (401)."""

    code = "unauthorized"
    message = "Invalid or missing API key"
    status_code = 401


class NotFoundError(KeywardError):
    """Resource not found (404)."""

    code = "not_found"
    message = "Resource not found"
    status_code = 404


class DuplicateDigestError(KeywardError):
    """A key with the same digest already exists (409).

    Raised by stores on insert. The lifecycle manager treats it as a
    generation failure and retries with a fresh key.
    """

    code = "duplicate_digest"
    message = "API key digest already exists"
    status_code = 409
    retryable = True


class KeyIssuanceFailedError(KeywardError):
    """Could not issue a unique key within the attempt budget (500)."""

    code = "key_issuance_failed"
    message = "Failed to issue a unique API key"
    status_code = 500


class StoreUnavailableError(KeywardError):
    """Key store could not be reached (503).

    Distinct from an invalid credential: callers should retry, not reject.
    """

    code = "store_unavailable"
    message = "API key store is unavailable"
    status_code = 503
    retryable = True
