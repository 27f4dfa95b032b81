"""Key store layer - persistence for API keys."""

from keyward.store.base import KeyStore
from keyward.store.memory import InMemoryKeyStore
from keyward.store.sql import SqlKeyStore

__all__ = ["KeyStore", "InMemoryKeyStore", "SqlKeyStore"]
