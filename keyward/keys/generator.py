"""API key generation.

Key format: ``{namespace}{hex}``, e.g. ``sk-kw-`` followed by 64 hex chars.
"""

from __future__ import annotations

import secrets

# 128 bits of entropy is the floor for a bearer credential
MIN_RANDOM_BYTES = 16


def generate_secret(namespace: str, nbytes: int = 32) -> str:
    """Generate a new raw API key.

    Uses the OS CSPRNG via ``secrets``. The result is returned once to the
    caller and never stored.

    Args:
        namespace: Non-secret prefix identifying the product (e.g. "sk-kw-")
        nbytes: Random bytes in the suffix (2 hex chars each)

    Returns:
        The full plaintext key
    """
    if nbytes < MIN_RANDOM_BYTES:
        raise ValueError(
            f"nbytes must be at least {MIN_RANDOM_BYTES} (got {nbytes})"
        )
    return f"{namespace}{secrets.token_hex(nbytes)}"
