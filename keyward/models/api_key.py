"""API key data model.

Stores hashed API keys for authentication.
Plaintext keys are never stored, only their digest and a display prefix.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from keyward.utils.datetime import utcnow


class ApiKey(SQLModel, table=True):
    """Persisted API key credential.

    ``key_digest`` is the only lookup path for validation. ``key_prefix``
    (first few chars of the plaintext) exists for logs and settings UIs.
    """

    __tablename__ = "api_keys"

    id: str = Field(primary_key=True)
    owner_id: str = Field(index=True)
    name: str = Field(default="")
    key_digest: str = Field(unique=True, index=True)  # SHA-256 / HMAC hex digest
    key_prefix: str = Field()  # e.g. "sk-kw-3f9a1c"
    created_at: datetime = Field(default_factory=utcnow)
    last_used_at: Optional[datetime] = Field(default=None)

    # Only set when the store runs with soft revocation
    revoked_at: Optional[datetime] = Field(default=None)

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None


class ApiKeyInfo(SQLModel):
    """Listing projection of an API key.

    Deliberately has no digest field; this is what leaves the store
    for owner-facing listings.
    """

    id: str
    name: str
    key_prefix: str
    created_at: datetime
    last_used_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: ApiKey) -> ApiKeyInfo:
        return cls(
            id=record.id,
            name=record.name,
            key_prefix=record.key_prefix,
            created_at=record.created_at,
            last_used_at=record.last_used_at,
        )


@dataclass(frozen=True, slots=True)
class ValidatedKey:
    """Identity resolved from a valid API key."""

    owner_id: str
    key_id: str


@dataclass(frozen=True, slots=True)
class IssuedKey:
    """Result of issuing a key.

    ``raw_secret`` is returned exactly once and cannot be recovered later.
    """

    id: str
    raw_secret: str
    key_prefix: str

    def __repr__(self) -> str:
        return f"IssuedKey(id={self.id!r}, key_prefix={self.key_prefix!r})"
