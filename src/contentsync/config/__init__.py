"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_int_env
from .errors import ConfigurationError
from .importation import ImportationConfig, get_importation_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "ImportationConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_importation_config",
    "get_storage_config",
    "optional_int_env",
]
