"""Keyward configuration management.

Configuration sources (in priority order):
1. Environment variables (KEYWARD_ prefix)
2. Config file (config.yaml)
3. Defaults
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database configuration."""

    # SQLite by default; postgresql+asyncpg:// works the same way
    url: str = "sqlite+aiosqlite:///./keyward.db"
    echo: bool = False


MIN_HIDDEN_HEX_CHARS = 32


class KeysConfig(BaseModel):
    """API key issuance and validation policy."""

    # Non-secret namespace prepended to every raw key (e.g. "sk-kw-3f9a...")
    namespace: str = "sk-kw-"

    # Random suffix size in bytes, rendered as 2 hex chars per byte.
    # 16 bytes is the floor (128 bits of entropy).
    random_bytes: int = Field(default=32, ge=16)

    # Leading chars of the raw key kept in cleartext for identification
    display_length: int = Field(default=12, ge=4)

    # Attempts at generating a fresh key when the digest collides
    max_issue_attempts: int = Field(default=3, ge=1)

    max_name_length: int = Field(default=100, ge=1)

    # Optional server-side secret. When set, digests are HMAC-SHA256 keyed
    # with it instead of plain SHA-256. Changing it invalidates every key.
    pepper: SecretStr | None = None

    # background: last_used_at is written by a detached task
    # inline: validation waits for the write (errors are still swallowed)
    touch_mode: Literal["background", "inline"] = "background"

    # delete: rows are removed on revoke
    # soft: rows keep a revoked_at marker for audit
    revocation: Literal["delete", "soft"] = "delete"

    @model_validator(mode="after")
    def _check_display_length(self) -> KeysConfig:
        # At least 128 bits (32 hex chars) of the random suffix stay hidden
        max_display = len(self.namespace) + 2 * self.random_bytes - MIN_HIDDEN_HEX_CHARS
        if self.display_length > max_display:
            raise ValueError(
                f"display_length must be at most {max_display} for this "
                "namespace and random_bytes"
            )
        return self

    def pepper_bytes(self) -> bytes | None:
        """Pepper as bytes for HMAC, or None when unkeyed."""
        if self.pepper is None:
            return None
        return self.pepper.get_secret_value().encode("utf-8") or None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["console", "json"] = "console"


class Settings(BaseSettings):
    """Keyward application settings."""

    model_config = SettingsConfigDict(
        env_prefix="KEYWARD_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    keys: KeysConfig = Field(default_factory=KeysConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; environment must still win.
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def _load_config_file() -> dict:
    """Load configuration from YAML file if exists.

    Looks for config file in order:
    1. KEYWARD_CONFIG_FILE environment variable
    2. ./config.yaml
    3. /etc/keyward/config.yaml
    """
    config_paths = [
        os.environ.get("KEYWARD_CONFIG_FILE"),
        Path("config.yaml"),
        Path("/etc/keyward/config.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Configuration is loaded from:
    1. YAML config file (if exists)
    2. Environment variables (override)
    3. Defaults
    """
    file_config = _load_config_file()
    return Settings(**file_config)
