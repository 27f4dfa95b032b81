"""In-memory key store.

Single-process only. All mutations happen under one ``asyncio.Lock`` so
each operation is atomic with respect to the others, which mirrors the
row-level atomicity of the SQL store.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime
from typing import Literal

import structlog

from keyward.errors import DuplicateDigestError, NotFoundError
from keyward.models.api_key import ApiKey, ApiKeyInfo
from keyward.store.base import KeyStore
from keyward.utils.datetime import as_naive_utc, utcnow

logger = structlog.get_logger()


def _snapshot(row: ApiKey) -> ApiKey:
    # Detached copy so callers never observe later in-place mutations
    return ApiKey(**row.model_dump())


class InMemoryKeyStore(KeyStore):
    """Dict-backed KeyStore."""

    def __init__(self, revocation: Literal["delete", "soft"] = "delete") -> None:
        self._rows: dict[str, ApiKey] = {}
        self._by_digest: dict[str, str] = {}
        self._lock = asyncio.Lock()
        self._revocation = revocation
        self._log = logger.bind(store="memory")

    async def insert(
        self,
        *,
        owner_id: str,
        name: str,
        key_digest: str,
        key_prefix: str,
        created_at: datetime,
    ) -> str:
        async with self._lock:
            if key_digest in self._by_digest:
                raise DuplicateDigestError(details={"key_prefix": key_prefix})

            key_id = f"key-{uuid.uuid4().hex[:12]}"
            self._rows[key_id] = ApiKey(
                id=key_id,
                owner_id=owner_id,
                name=name,
                key_digest=key_digest,
                key_prefix=key_prefix,
                created_at=as_naive_utc(created_at),
            )
            self._by_digest[key_digest] = key_id
            return key_id

    async def list_by_owner(self, owner_id: str) -> list[ApiKeyInfo]:
        async with self._lock:
            rows = [
                r for r in self._rows.values()
                if r.owner_id == owner_id and r.is_active
            ]
        rows.sort(key=lambda r: (r.created_at, r.id))
        return [ApiKeyInfo.from_record(r) for r in rows]

    async def find_by_digest(self, key_digest: str) -> ApiKey | None:
        async with self._lock:
            key_id = self._by_digest.get(key_digest)
            if key_id is None:
                return None
            row = self._rows[key_id]
            if not row.is_active:
                return None
            return _snapshot(row)

    async def get(self, key_id: str) -> ApiKey | None:
        async with self._lock:
            row = self._rows.get(key_id)
            return _snapshot(row) if row is not None else None

    async def touch_last_used(self, key_id: str, timestamp: datetime) -> None:
        timestamp = as_naive_utc(timestamp)
        async with self._lock:
            row = self._rows.get(key_id)
            if row is None or not row.is_active:
                raise NotFoundError(f"API key not found: {key_id}")
            if row.last_used_at is None or row.last_used_at < timestamp:
                row.last_used_at = timestamp

    async def remove(self, key_id: str) -> None:
        async with self._lock:
            row = self._rows.get(key_id)
            if row is None or not row.is_active:
                raise NotFoundError(f"API key not found: {key_id}")

            if self._revocation == "soft":
                # Revoked rows keep their digest reserved
                row.revoked_at = utcnow()
            else:
                del self._rows[key_id]
                self._by_digest.pop(row.key_digest, None)

        self._log.debug("store.remove", key_id=key_id, mode=self._revocation)
