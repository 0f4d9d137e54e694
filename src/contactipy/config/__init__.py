"""Application configuration helpers."""

from __future__ import annotations

from .contactsplus import ContactsPlusConfig, get_contactsplus_config
from .env import require_env_vars
from .errors import (
    ConfigurationError,
    InvalidConfigurationValueError,
    MissingConfigurationError,
)
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)
from .sync import ConflictResolution, ReviewPolicy, SyncConfig, get_sync_config

__all__ = [
    "ConfigurationError",
    "ConflictResolution",
    "ContactsPlusConfig",
    "DatabaseConfig",
    "InvalidConfigurationValueError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "ReviewPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_contactsplus_config",
    "get_database_config",
    "get_database_uri",
    "get_storage_config",
    "get_sync_config",
    "require_env_vars",
]
