"""Key generation and hashing primitives."""

from keyward.keys.generator import MIN_RANDOM_BYTES, generate_secret
from keyward.keys.hasher import KeyMaterial, digest_secret, hash_secret

__all__ = [
    "MIN_RANDOM_BYTES",
    "KeyMaterial",
    "digest_secret",
    "generate_secret",
    "hash_secret",
]
