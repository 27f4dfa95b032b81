"""Keyward FastAPI application entry point.

The app only wires key validation for embedding services: it exposes
``/health`` and ``/v1/whoami`` (an authenticated echo of the caller's
identity). Key management is done through ApiKeyService directly.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from keyward import __version__
from keyward.api.dependencies import AuthDep
from keyward.config import get_settings
from keyward.db import close_db, get_session_factory, init_db
from keyward.errors import KeywardError
from keyward.logging import setup_logging
from keyward.services.api_key import ApiKeyService, build_store

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    setup_logging(settings.logging)

    logger.info("keyward.startup", version=__version__)
    await init_db()

    store = build_store(settings, get_session_factory())
    app.state.api_key_service = ApiKeyService.from_settings(store, settings)

    yield

    logger.info("keyward.shutdown")
    await app.state.api_key_service.drain()
    await store.close()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Keyward",
        description="API key validation",
        version=__version__,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add request ID to all requests."""
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response

    @app.exception_handler(KeywardError)
    async def keyward_error_handler(request: Request, exc: KeywardError):
        """Handle Keyward errors with consistent format."""
        request_id = getattr(request.state, "request_id", None)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(request_id),
            headers=headers,
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get("/v1/whoami")
    async def whoami(identity: AuthDep) -> dict[str, str]:
        """Return the identity behind the presented key."""
        return {"owner_id": identity.owner_id, "key_id": identity.key_id}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("keyward.main:app", host="127.0.0.1", port=8000)
