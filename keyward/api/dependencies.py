"""FastAPI dependencies for API key authentication.

Credential sources, first match wins:
1. ``Authorization: Bearer <key>``
2. ``?key=<key>`` query parameter

Every failure (missing, malformed, unknown, revoked) raises the same
UnauthorizedError so responses reveal nothing about key existence.
Store outages propagate as StoreUnavailableError (503), not 401.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import Depends, Request

from keyward.errors import UnauthorizedError
from keyward.models.api_key import ValidatedKey
from keyward.services.api_key import ApiKeyService

logger = structlog.get_logger()


def get_api_key_service(request: Request) -> ApiKeyService:
    """Get the ApiKeyService wired at startup."""
    return request.app.state.api_key_service


def _extract_credential(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header:
        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer":
            return None
        return token.strip() or None

    return request.query_params.get("key") or None


async def authenticate(
    request: Request,
    service: Annotated[ApiKeyService, Depends(get_api_key_service)],
) -> ValidatedKey:
    """Authenticate request and return the key's identity.

    Raises:
        UnauthorizedError: If authentication fails
    """
    raw_secret = _extract_credential(request)
    if raw_secret is None:
        raise UnauthorizedError()

    identity = await service.validate_api_key(raw_secret)
    if identity is None:
        raise UnauthorizedError()

    logger.debug("auth.success", owner_id=identity.owner_id, key_id=identity.key_id)
    return identity


AuthDep = Annotated[ValidatedKey, Depends(authenticate)]
