"""API key hashing.

SHA-256 is used because API keys are high-entropy random strings, not
passwords; a slow KDF would only add latency to every request. When a
pepper is configured the digest becomes HMAC-SHA256 keyed with it, so a
leaked table alone cannot be checked against candidate keys.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

DEFAULT_DISPLAY_LENGTH = 12


@dataclass(frozen=True, slots=True)
class KeyMaterial:
    """What gets persisted for a key: its digest and display prefix."""

    digest: str
    prefix: str


def digest_secret(raw_secret: str, pepper: bytes | None = None) -> str:
    """Return the hex digest used as the lookup key for ``raw_secret``."""
    data = raw_secret.encode("utf-8")
    if pepper:
        return hmac.new(pepper, data, hashlib.sha256).hexdigest()
    return hashlib.sha256(data).hexdigest()


def hash_secret(
    raw_secret: str,
    *,
    display_length: int = DEFAULT_DISPLAY_LENGTH,
    pepper: bytes | None = None,
) -> KeyMaterial:
    """Derive ``(digest, prefix)`` from a raw key.

    Deterministic: the same input always yields the same output, which the
    digest index lookup depends on.
    """
    return KeyMaterial(
        digest=digest_secret(raw_secret, pepper),
        prefix=raw_secret[:display_length],
    )
