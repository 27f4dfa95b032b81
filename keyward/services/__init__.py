"""Service layer - API key issuance and validation."""

from keyward.services.api_key import ApiKeyService, build_store
from keyward.services.lifecycle import ApiKeyLifecycle
from keyward.services.validator import ApiKeyValidator

__all__ = ["ApiKeyLifecycle", "ApiKeyService", "ApiKeyValidator", "build_store"]
