"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class SourceConfig:
    """Data source configuration.

    Attributes:
        path: Source location (local path or file:// URL)
        skip_hidden: Ignore dot-files and dot-directories
        follow_symlinks: Descend into symlinked directories
    """

    path: str = ""
    skip_hidden: bool = True
    follow_symlinks: bool = False


@dataclass
class RepositoryConfig:
    """Storage engine repository configuration.

    Attributes:
        path: Repository location (local path or file:// URL)
    """

    path: str = ""


@dataclass
class StoreConfig:
    """Metadata store configuration.

    Attributes:
        path: Store directory; defaults to <repository>/models
    """

    path: Optional[str] = None


@dataclass
class AccountConfig:
    """Account used to connect to the source.

    Attributes:
        provider: Provider name
        tenant_id: Tenant identifier
        credentials: Provider specific credential values
    """

    provider: str = "local"
    tenant_id: str = ""
    credentials: dict[str, str] = field(default_factory=dict, repr=False)


@dataclass
class BackupConfig:
    """One configured backup (a selector).

    Attributes:
        name: Name of the backup
        service: Service to back up (exchange, onedrive, sharepoint, files)
        resource_owners: Owners to include; ["*"] selects all
        categories: Optional categories to restrict to
        enabled: Whether `run` executes this backup
    """

    name: str
    service: str = "files"
    resource_owners: list[str] = field(default_factory=lambda: ["*"])
    categories: list[str] = field(default_factory=list)
    enabled: bool = True


@dataclass
class GlobalConfig:
    """Global configuration settings.

    Attributes:
        log_file: Path to log file (None for no file logging)
        event_log: Path of the JSON-lines lifecycle event log
        show_progress: Display progress spinners during runs
        disable_metrics: Do not emit lifecycle events
        quiet: Suppress non-essential output
        verbose: Enable verbose output
    """

    log_file: Optional[str] = None
    event_log: Optional[str] = None
    show_progress: bool = True
    disable_metrics: bool = False
    quiet: bool = False
    verbose: bool = False


@dataclass
class Config:
    """Root configuration object."""

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    account: AccountConfig = field(default_factory=AccountConfig)
    backups: list[BackupConfig] = field(default_factory=list)

    def get_store_path(self) -> Path:
        """Effective metadata store directory."""
        if self.store.path:
            return Path(self.store.path).expanduser()
        repo = self.repository.path
        if repo.startswith("file://"):
            repo = repo[len("file://"):]
        return Path(repo).expanduser() / "models"

    def get_enabled_backups(self) -> list[BackupConfig]:
        """Get list of enabled backups."""
        return [b for b in self.backups if b.enabled]
