"""API key validation.

Flow per request:
  1. Hash the presented key
  2. Look up the digest in the store
  3. Miss -> None (expected outcome, not an error)
  4. Hit  -> record last_used_at (background task or inline)
  5. Return owner identity

The prefix never takes part in the decision, and no plaintext comparison
happens: matching is an equality lookup on the stored digest.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Literal

import structlog

from keyward.errors import KeywardError, NotFoundError
from keyward.keys.hasher import digest_secret
from keyward.models.api_key import ValidatedKey
from keyward.store.base import KeyStore
from keyward.utils.datetime import utcnow

logger = structlog.get_logger()


class ApiKeyValidator:
    """Resolves raw API keys to owner identities."""

    def __init__(
        self,
        store: KeyStore,
        *,
        pepper: bytes | None = None,
        touch_mode: Literal["background", "inline"] = "background",
    ) -> None:
        self._store = store
        self._pepper = pepper
        self._touch_mode = touch_mode
        self._pending: set[asyncio.Task[None]] = set()
        self._log = logger.bind(component="validator")

    @property
    def pending_touches(self) -> int:
        return len(self._pending)

    async def validate(self, raw_secret: str | None) -> ValidatedKey | None:
        """Validate a raw key.

        Returns:
            ValidatedKey on success, None if the key is unknown or revoked

        Raises:
            StoreUnavailableError: If the lookup itself failed
        """
        if not raw_secret or not isinstance(raw_secret, str):
            return None

        try:
            key_digest = digest_secret(raw_secret, self._pepper)
        except UnicodeEncodeError:
            # Lone surrogates cannot be UTF-8 encoded, so no issued key matches
            self._log.debug("api_key.validate.miss", reason="unencodable")
            return None

        api_key = await self._store.find_by_digest(key_digest)

        if api_key is None:
            self._log.debug("api_key.validate.miss")
            return None

        used_at = utcnow()
        if self._touch_mode == "inline":
            await self.touch_last_used(api_key.id, used_at)
        else:
            self._schedule_touch(api_key.id, used_at)

        self._log.debug(
            "api_key.validate.hit",
            key_id=api_key.id,
            key_prefix=api_key.key_prefix,
        )
        return ValidatedKey(owner_id=api_key.owner_id, key_id=api_key.id)

    async def touch_last_used(
        self,
        key_id: str,
        timestamp: datetime | None = None,
    ) -> None:
        """Record a use of ``key_id``.

        Failures are logged and dropped: a lost usage timestamp must never
        fail an otherwise successful validation.
        """
        try:
            await self._store.touch_last_used(key_id, timestamp or utcnow())
        except NotFoundError:
            # Key was removed between lookup and touch
            self._log.info("api_key.touch.missing", key_id=key_id)
        except KeywardError as exc:
            self._log.warning(
                "api_key.touch.failed",
                key_id=key_id,
                error=exc.code,
            )

    def _schedule_touch(self, key_id: str, timestamp: datetime) -> None:
        task = asyncio.create_task(
            self.touch_last_used(key_id, timestamp),
            name=f"api-key-touch-{key_id}",
        )
        # Keep a strong reference until done; the event loop only holds weak ones
        self._pending.add(task)
        task.add_done_callback(self._on_touch_done)

    def _on_touch_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.error(
                "api_key.touch.crashed",
                error=type(exc).__name__,
                exc_info=exc,
            )

    async def drain(self) -> None:
        """Wait for in-flight background touches (used on shutdown)."""
        while self._pending:
            await asyncio.wait(list(self._pending))
