# pyright: standard

"""backup-coordinator: backup_coordinator/endpoint/__init__.py."""

import logging
import urllib.parse
from pathlib import Path

from .common import Endpoint
from .local import LocalConnection, LocalConnector, LocalStorageEngine

logger = logging.getLogger(__name__)

__all__ = [
    "Endpoint",
    "LocalConnection",
    "LocalConnector",
    "LocalStorageEngine",
    "choose_connector",
    "choose_engine",
]


def _local_path(spec: str) -> Path:
    """Path of a local spec: a plain path or a file:// URL."""
    if "://" not in spec:
        return Path(spec)
    parsed = urllib.parse.urlparse(spec)
    if parsed.scheme != "file":
        raise ValueError(f"Unsupported endpoint scheme '{parsed.scheme}' in {spec}")
    return Path(urllib.parse.unquote(parsed.path))


def choose_connector(spec, common_config=None) -> LocalConnector:
    """
    Choose a data source connector for the given specification.

    Args:
        spec (str): Source location (a path or file:// URL).
        common_config (dict): Extra endpoint settings.

    Returns:
        A connector instance.

    Raises:
        ValueError: If no connector supports the specification.
    """
    config = dict(common_config or {})
    config["path"] = _local_path(spec)
    logger.debug("Using local connector for %s", config["path"])
    return LocalConnector(config)


def choose_engine(spec, common_config=None) -> LocalStorageEngine:
    """
    Choose a storage engine for the given repository specification.

    Raises:
        ValueError: If no engine supports the specification.
    """
    config = dict(common_config or {})
    config["path"] = _local_path(spec)
    logger.debug("Using local storage engine at %s", config["path"])
    return LocalStorageEngine(config)
