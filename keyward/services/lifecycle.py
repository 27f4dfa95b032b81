"""API key lifecycle: issuance and removal.

State per key: Active (after create) -> Deleted (after remove, terminal).
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from keyward.config import KeysConfig
from keyward.errors import DuplicateDigestError, KeyIssuanceFailedError, ValidationError
from keyward.keys.generator import generate_secret
from keyward.keys.hasher import hash_secret
from keyward.models.api_key import IssuedKey
from keyward.store.base import KeyStore
from keyward.utils.datetime import utcnow

logger = structlog.get_logger()


class ApiKeyLifecycle:
    """Creates and removes API keys."""

    def __init__(
        self,
        store: KeyStore,
        config: KeysConfig,
        *,
        secret_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._pepper = config.pepper_bytes()
        self._secret_factory = secret_factory or (
            lambda: generate_secret(config.namespace, config.random_bytes)
        )
        self._log = logger.bind(component="lifecycle")

    def _check_create_args(self, owner_id: str, name: str) -> str:
        if not isinstance(owner_id, str) or not owner_id.strip():
            raise ValidationError("owner_id must be a non-empty string")
        if not isinstance(name, str):
            raise ValidationError("name must be a string")

        name = name.strip()
        if not name:
            raise ValidationError("name must not be empty")
        if len(name) > self._config.max_name_length:
            raise ValidationError(
                f"name must be at most {self._config.max_name_length} characters",
                details={"max_length": self._config.max_name_length},
            )
        return name

    async def create(self, owner_id: str, name: str) -> IssuedKey:
        """Issue a new key for ``owner_id``.

        A digest collision is treated as a generation failure: a fresh key
        is generated, up to ``max_issue_attempts`` times.

        Returns:
            IssuedKey carrying the plaintext; it is not recoverable later

        Raises:
            ValidationError: Bad owner_id or name
            KeyIssuanceFailedError: Every attempt collided
            StoreUnavailableError: Store I/O failure
        """
        name = self._check_create_args(owner_id, name)
        attempts = self._config.max_issue_attempts

        for attempt in range(1, attempts + 1):
            raw_secret = self._secret_factory()
            material = hash_secret(
                raw_secret,
                display_length=self._config.display_length,
                pepper=self._pepper,
            )

            try:
                key_id = await self._store.insert(
                    owner_id=owner_id,
                    name=name,
                    key_digest=material.digest,
                    key_prefix=material.prefix,
                    created_at=utcnow(),
                )
            except DuplicateDigestError:
                self._log.warning(
                    "api_key.create.collision",
                    owner_id=owner_id,
                    attempt=attempt,
                    max_attempts=attempts,
                )
                continue

            self._log.info(
                "api_key.create",
                key_id=key_id,
                owner_id=owner_id,
                key_prefix=material.prefix,
            )
            return IssuedKey(id=key_id, raw_secret=raw_secret, key_prefix=material.prefix)

        self._log.error("api_key.create.exhausted", owner_id=owner_id, attempts=attempts)
        raise KeyIssuanceFailedError(details={"attempts": attempts})

    async def remove(self, key_id: str) -> None:
        """Remove a key. Irreversible.

        Raises:
            NotFoundError: Key does not exist or was already removed
        """
        await self._store.remove(key_id)
        self._log.info("api_key.remove", key_id=key_id)
