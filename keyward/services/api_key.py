"""API Key service.

Public surface used by account-management flows and request
authentication:

- create_api_key  -> IssuedKey (plaintext shown once)
- list_api_keys   -> ApiKeyInfo list (never the digest)
- validate_api_key -> ValidatedKey | None
- revoke_api_key  -> None, or NotFoundError
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from keyward.config import KeysConfig, Settings
from keyward.models.api_key import ApiKeyInfo, IssuedKey, ValidatedKey
from keyward.services.lifecycle import ApiKeyLifecycle
from keyward.services.validator import ApiKeyValidator
from keyward.store.base import KeyStore
from keyward.store.sql import SqlKeyStore


def build_store(
    settings: Settings,
    session_factory: Callable[[], AsyncSession],
) -> KeyStore:
    """Build the configured SQL key store."""
    return SqlKeyStore(session_factory, revocation=settings.keys.revocation)


class ApiKeyService:
    """Service for API key lifecycle management and validation."""

    def __init__(
        self,
        store: KeyStore,
        config: KeysConfig | None = None,
        *,
        secret_factory: Callable[[], str] | None = None,
    ) -> None:
        config = config or KeysConfig()
        self._store = store
        self._config = config
        self._lifecycle = ApiKeyLifecycle(store, config, secret_factory=secret_factory)
        self._validator = ApiKeyValidator(
            store,
            pepper=config.pepper_bytes(),
            touch_mode=config.touch_mode,
        )

    @classmethod
    def from_settings(cls, store: KeyStore, settings: Settings) -> ApiKeyService:
        return cls(store, settings.keys)

    @property
    def store(self) -> KeyStore:
        return self._store

    async def create_api_key(self, owner_id: str, name: str) -> IssuedKey:
        """Issue a key for ``owner_id``. See ApiKeyLifecycle.create."""
        return await self._lifecycle.create(owner_id, name)

    async def list_api_keys(self, owner_id: str) -> list[ApiKeyInfo]:
        return await self._store.list_by_owner(owner_id)

    async def validate_api_key(self, raw_secret: str | None) -> ValidatedKey | None:
        """Resolve a raw key to its owner, or None if not valid."""
        return await self._validator.validate(raw_secret)

    async def touch_last_used(self, key_id: str) -> None:
        await self._validator.touch_last_used(key_id)

    async def revoke_api_key(self, key_id: str) -> None:
        """Revoke a key.

        Raises:
            NotFoundError: Key does not exist or was already removed
        """
        await self._lifecycle.remove(key_id)

    async def drain(self) -> None:
        """Wait for pending last-used writes."""
        await self._validator.drain()
