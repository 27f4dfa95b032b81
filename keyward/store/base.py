"""KeyStore base class - persistence abstraction for API keys.

A store is responsible ONLY for durable single-row operations.
It does NOT handle:
- Key generation or hashing
- Retry on digest collision
- Swallowing usage-timestamp failures

Every operation touches exactly one row and is atomic on its own; callers
hold no locks across calls. Implementations own their concurrency
discipline (transactions, locks).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from keyward.models.api_key import ApiKey, ApiKeyInfo


class KeyStore(ABC):
    """Abstract API key store."""

    @abstractmethod
    async def insert(
        self,
        *,
        owner_id: str,
        name: str,
        key_digest: str,
        key_prefix: str,
        created_at: datetime,
    ) -> str:
        """Persist a new key.

        Returns:
            Store-assigned key ID

        Raises:
            DuplicateDigestError: If ``key_digest`` already exists
            StoreUnavailableError: On I/O failure
        """

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> list[ApiKeyInfo]:
        """List an owner's active keys, oldest first, without digests."""

    @abstractmethod
    async def find_by_digest(self, key_digest: str) -> ApiKey | None:
        """Find the active key with this digest.

        Revoked keys are not returned.
        """

    @abstractmethod
    async def get(self, key_id: str) -> ApiKey | None:
        """Get a key by ID, including soft-revoked rows.

        Not part of the validation path. It is the audit and inspection hook:
        operators and tests use it to read back a record's full state
        (``last_used_at``, ``revoked_at``) after the public operations ran.
        """

    @abstractmethod
    async def touch_last_used(self, key_id: str, timestamp: datetime) -> None:
        """Record a successful use.

        Never moves ``last_used_at`` backwards: an older timestamp arriving
        after a newer one is dropped.

        Raises:
            NotFoundError: If the key does not exist (or was revoked)
        """

    @abstractmethod
    async def remove(self, key_id: str) -> None:
        """Remove (or revoke) a key.

        Raises:
            NotFoundError: If the key does not exist or is already removed
        """

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
