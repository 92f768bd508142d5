"""Configuration system for backup-coordinator.

This module provides TOML-based configuration loading, validation,
and schema definitions.
"""

from .loader import ConfigError, find_config_file, generate_example_config, load_config
from .schema import (
    AccountConfig,
    BackupConfig,
    Config,
    GlobalConfig,
    RepositoryConfig,
    SourceConfig,
    StoreConfig,
)

__all__ = [
    "AccountConfig",
    "BackupConfig",
    "Config",
    "GlobalConfig",
    "RepositoryConfig",
    "SourceConfig",
    "StoreConfig",
    "load_config",
    "find_config_file",
    "generate_example_config",
    "ConfigError",
]
