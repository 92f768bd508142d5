"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import tomllib
from pathlib import Path
from typing import Any

from ..selectors import Service
from .schema import (
    AccountConfig,
    BackupConfig,
    Config,
    GlobalConfig,
    RepositoryConfig,
    SourceConfig,
    StoreConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "backup-coordinator" / "config.toml",
    Path("/etc/backup-coordinator/config.toml"),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _string_list(value: Any, field_name: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{field_name}' must be a string or a list of strings")
    return list(value)


def _parse_global(data: dict[str, Any]) -> GlobalConfig:
    """Parse global configuration from dict."""
    return GlobalConfig(
        log_file=data.get("log_file"),
        event_log=data.get("event_log"),
        show_progress=data.get("show_progress", True),
        disable_metrics=data.get("disable_metrics", False),
        quiet=data.get("quiet", False),
        verbose=data.get("verbose", False),
    )


def _parse_source(data: dict[str, Any]) -> SourceConfig:
    """Parse source configuration from dict."""
    if "path" not in data:
        raise ConfigError("Source missing required 'path' field")

    return SourceConfig(
        path=data["path"],
        skip_hidden=data.get("skip_hidden", True),
        follow_symlinks=data.get("follow_symlinks", False),
    )


def _parse_repository(data: dict[str, Any]) -> RepositoryConfig:
    """Parse repository configuration from dict."""
    if "path" not in data:
        raise ConfigError("Repository missing required 'path' field")

    return RepositoryConfig(path=data["path"])


def _parse_account(data: dict[str, Any]) -> AccountConfig:
    """Parse account configuration from dict."""
    return AccountConfig(
        provider=data.get("provider", "local"),
        tenant_id=data.get("tenant_id", ""),
        credentials=dict(data.get("credentials", {})),
    )


def _parse_backup(data: dict[str, Any], index: int) -> BackupConfig:
    """Parse one [[backups]] entry from dict."""
    name = data.get("name") or f"backup-{index + 1}"

    return BackupConfig(
        name=name,
        service=data.get("service", "files"),
        resource_owners=_string_list(
            data.get("resource_owners", ["*"]), f"{name}.resource_owners"
        ),
        categories=_string_list(data.get("categories", []), f"{name}.categories"),
        enabled=data.get("enabled", True),
    )


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []

    if not config.backups:
        warnings.append("No backups configured")

    for backup in config.backups:
        if Service.parse(backup.service) is Service.UNKNOWN:
            warnings.append(
                f"Backup '{backup.name}' has unknown service '{backup.service}'"
            )
        if not backup.resource_owners:
            warnings.append(f"Backup '{backup.name}' has no resource owners")

    names = [b.name for b in config.backups]
    if len(names) != len(set(names)):
        warnings.append("Duplicate backup names detected")

    if config.repository.path and config.source.path:
        if Path(config.repository.path).expanduser() == Path(
            config.source.path
        ).expanduser():
            warnings.append("Repository path is the same as the source path")

    return warnings


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    if "source" not in data:
        raise ConfigError("Missing required [source] section")
    if "repository" not in data:
        raise ConfigError("Missing required [repository] section")

    config = Config(
        global_config=_parse_global(data.get("global", {})),
        source=_parse_source(data["source"]),
        repository=_parse_repository(data["repository"]),
        store=StoreConfig(path=data.get("store", {}).get("path")),
        account=_parse_account(data.get("account", {})),
        backups=[_parse_backup(b, i) for i, b in enumerate(data.get("backups", []))],
    )

    # Validate and collect warnings
    warnings = _validate_config(config)

    return config, warnings


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# backup-coordinator configuration
# See documentation for full options

[global]
show_progress = true
disable_metrics = false
# log_file = "/var/log/backup-coordinator.log"
# event_log = "~/.local/state/backup-coordinator/events.jsonl"

[account]
provider = "local"
tenant_id = ""

# Every directory under the source path is a resource owner
[source]
path = "/srv/data"

[repository]
path = "/mnt/backup/repository"

# Defaults to <repository>/models
# [store]
# path = "/mnt/backup/models"

[[backups]]
name = "all-files"
service = "files"
resource_owners = ["*"]

# A single owner, restricted to some categories
# [[backups]]
# name = "alice-mail"
# service = "exchange"
# resource_owners = ["alice"]
# categories = ["mail", "contacts"]
"""
