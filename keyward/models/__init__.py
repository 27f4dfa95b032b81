"""SQLModel data models."""

from keyward.models.api_key import ApiKey, ApiKeyInfo, IssuedKey, ValidatedKey

__all__ = [
    "ApiKey",
    "ApiKeyInfo",
    "IssuedKey",
    "ValidatedKey",
]
