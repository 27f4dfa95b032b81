"""Shared fixtures for Keyward unit tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import keyward.models  # noqa: F401
from keyward.config import KeysConfig
from keyward.services.api_key import ApiKeyService
from keyward.store.memory import InMemoryKeyStore
from keyward.store.sql import SqlKeyStore
from tests.fakes import FlakyKeyStore


@pytest.fixture
def keys_config() -> KeysConfig:
    """Key policy with inline touches so tests can read last_used_at directly."""
    return KeysConfig(touch_mode="inline")


@pytest.fixture
def memory_store() -> InMemoryKeyStore:
    return InMemoryKeyStore()


@pytest.fixture
def flaky_store() -> FlakyKeyStore:
    return FlakyKeyStore()


@pytest.fixture
def service(memory_store: InMemoryKeyStore, keys_config: KeysConfig) -> ApiKeyService:
    return ApiKeyService(memory_store, keys_config)


@pytest.fixture
async def session_factory(tmp_path: Path):
    """File-backed SQLite so every store session gets its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'keyward.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def sql_store(session_factory) -> SqlKeyStore:
    return SqlKeyStore(session_factory)


@pytest.fixture(params=["memory", "sql"])
def any_store(request: pytest.FixtureRequest, sql_store: SqlKeyStore):
    """Each KeyStore implementation, for contract tests."""
    if request.param == "memory":
        return InMemoryKeyStore()
    return sql_store
