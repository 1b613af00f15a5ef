"""Application configuration helpers."""

from __future__ import annotations

from .contacts import ContactsConfig, get_contacts_config
from .env import optional_env_var, optional_float_env_var
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .providers import ProviderConfig, ProvidersConfig, get_providers_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_http_cache_path,
    get_storage_config,
)

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "ContactsConfig",
    "DatabaseConfig",
    "ProviderConfig",
    "ProvidersConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_contacts_config",
    "get_database_config",
    "get_http_cache_path",
    "get_providers_config",
    "get_storage_config",
    "optional_env_var",
    "optional_float_env_var",
]
