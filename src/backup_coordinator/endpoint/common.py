# pyright: standard

"""backup-coordinator: backup_coordinator/endpoint/common.py
Common functionality among endpoints.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class Endpoint:
    """Generic structure of a data endpoint, configured through a dict."""

    def __init__(self, config=None, **kwargs) -> None:
        """
        Initialize the Endpoint with a configuration dictionary.

        Args:
            config (dict): Configuration dictionary containing endpoint settings.
            kwargs: Additional settings overriding config.
        """
        config = config or {}
        self.config = {}

        self.config["path"] = self._normalize_path(config.get("path"))
        self.config["follow_symlinks"] = config.get("follow_symlinks", False)
        self.config["skip_hidden"] = config.get("skip_hidden", True)
        self.config["lock_file_name"] = config.get(
            "lock_file_name", ".backup-coordinator.lock"
        )

        for key, value in kwargs.items():
            self.config[key] = value

        self._prepared = False

    def _normalize_path(self, val):
        if val is None:
            return None
        path = Path(val).expanduser()
        return path.resolve() if not path.is_absolute() else path

    def prepare(self):
        """Public access to _prepare; safe to call more than once."""
        if self._prepared:
            return None
        logger.debug("Preparing endpoint %r ...", self)
        result = self._prepare()
        self._prepared = True
        return result

    def _prepare(self):
        """Hook for subclasses."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config['path']})"
