"""SQL key store using SQLModel async.

Each operation runs in its own short session and commits once, so every
call is a single-row atomic unit of work. Digest uniqueness is enforced by
the unique index on ``api_keys.key_digest``, not by a read-then-write check.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal

import structlog
from sqlalchemy import delete, or_, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from keyward.errors import DuplicateDigestError, NotFoundError, StoreUnavailableError
from keyward.models.api_key import ApiKey, ApiKeyInfo
from keyward.store.base import KeyStore
from keyward.utils.datetime import as_naive_utc, utcnow

logger = structlog.get_logger()


class SqlKeyStore(KeyStore):
    """KeyStore backed by a relational database."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        *,
        revocation: Literal["delete", "soft"] = "delete",
    ) -> None:
        self._session_factory = session_factory
        self._revocation = revocation
        self._log = logger.bind(store="sql")

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        """Open a session and map driver failures to StoreUnavailableError.

        Besides DBAPIError this covers pool checkout timeouts and raw socket
        errors that some drivers raise while connecting.

        IntegrityError passes through untouched; only ``insert`` gives it
        a meaning.
        """
        try:
            async with self._session_factory() as session:
                yield session
        except IntegrityError:
            raise
        except (DBAPIError, PoolTimeoutError, OSError) as exc:
            self._log.error(
                "store.unavailable",
                operation=operation,
                error=type(exc).__name__,
            )
            raise StoreUnavailableError(details={"operation": operation}) from exc

    async def insert(
        self,
        *,
        owner_id: str,
        name: str,
        key_digest: str,
        key_prefix: str,
        created_at: datetime,
    ) -> str:
        key_id = f"key-{uuid.uuid4().hex[:16]}"
        api_key = ApiKey(
            id=key_id,
            owner_id=owner_id,
            name=name,
            key_digest=key_digest,
            key_prefix=key_prefix,
            created_at=as_naive_utc(created_at),
        )

        try:
            async with self._session("insert") as db:
                db.add(api_key)
                await db.commit()
        except IntegrityError as exc:
            raise DuplicateDigestError(details={"key_prefix": key_prefix}) from exc

        return key_id

    async def list_by_owner(self, owner_id: str) -> list[ApiKeyInfo]:
        # Select explicit columns so the digest never leaves the database
        query = (
            select(
                ApiKey.id,
                ApiKey.name,
                ApiKey.key_prefix,
                ApiKey.created_at,
                ApiKey.last_used_at,
            )
            .where(
                ApiKey.owner_id == owner_id,
                ApiKey.revoked_at == None,  # noqa: E711
            )
            .order_by(ApiKey.created_at, ApiKey.id)
        )
        async with self._session("list_by_owner") as db:
            result = await db.execute(query)
            rows = result.all()

        return [ApiKeyInfo(**row._mapping) for row in rows]

    async def find_by_digest(self, key_digest: str) -> ApiKey | None:
        async with self._session("find_by_digest") as db:
            result = await db.execute(
                select(ApiKey).where(
                    ApiKey.key_digest == key_digest,
                    ApiKey.revoked_at == None,  # noqa: E711
                )
            )
            return result.scalars().first()

    async def get(self, key_id: str) -> ApiKey | None:
        async with self._session("get") as db:
            result = await db.execute(select(ApiKey).where(ApiKey.id == key_id))
            return result.scalars().first()

    async def touch_last_used(self, key_id: str, timestamp: datetime) -> None:
        timestamp = as_naive_utc(timestamp)
        async with self._session("touch_last_used") as db:
            # Guarded update: a stale timestamp never overwrites a newer one
            result = await db.execute(
                update(ApiKey)
                .where(
                    ApiKey.id == key_id,
                    ApiKey.revoked_at == None,  # noqa: E711
                    or_(
                        ApiKey.last_used_at == None,  # noqa: E711
                        ApiKey.last_used_at < timestamp,
                    ),
                )
                .values(last_used_at=timestamp)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                exists = await db.execute(
                    select(ApiKey.id).where(
                        ApiKey.id == key_id,
                        ApiKey.revoked_at == None,  # noqa: E711
                    )
                )
                if exists.first() is None:
                    raise NotFoundError(f"API key not found: {key_id}")
            await db.commit()

    async def remove(self, key_id: str) -> None:
        if self._revocation == "soft":
            statement = (
                update(ApiKey)
                .where(
                    ApiKey.id == key_id,
                    ApiKey.revoked_at == None,  # noqa: E711
                )
                .values(revoked_at=utcnow())
                .execution_options(synchronize_session=False)
            )
        else:
            statement = (
                delete(ApiKey)
                .where(ApiKey.id == key_id)
                .execution_options(synchronize_session=False)
            )

        async with self._session("remove") as db:
            result = await db.execute(statement)
            if result.rowcount == 0:
                raise NotFoundError(f"API key not found: {key_id}")
            await db.commit()

        self._log.debug("store.remove", key_id=key_id, mode=self._revocation)
