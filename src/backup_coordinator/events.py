"""Lifecycle events emitted by operations.

Events are fire-and-forget: a bus that fails to deliver must never stop a
run, so operations emit through safe_emit(), which logs and drops delivery
errors.
"""

import json
import logging
import os
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock

logger = logging.getLogger(__name__)

# Event kinds
BACKUP_START = "backup-start"
BACKUP_END = "backup-end"

# Attribute keys
BACKUP_ID = "backup_id"
DATA_STORED = "data_stored"
DURATION = "duration"
END_TIME = "end_time"
ERROR = "error"
RESOURCES = "resources"
SERVICE = "service"
START_TIME = "start_time"
STATUS = "status"


class NullEventBus:
    """Bus that discards everything."""

    def emit(self, ctx, kind: str, attrs: dict[str, Any]) -> None:
        return None


class RecordingEventBus:
    """Bus that keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self._lock = threading.Lock()

    def emit(self, ctx, kind: str, attrs: dict[str, Any]) -> None:
        with self._lock:
            self.events.append((kind, dict(attrs)))

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.events]


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Enum):
        return str(value)
    return str(value)


class JsonlEventBus:
    """Append each event as one JSON line to a log file.

    Concurrent writers from other processes are serialized through a
    FileLock next to the log. A writer waits at most lock_timeout seconds
    for the lock, then filelock.Timeout is raised.
    """

    def __init__(self, path: Path | str, lock_timeout: float = 5.0) -> None:
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)

    def emit(self, ctx, kind: str, attrs: dict[str, Any]) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "pid": os.getpid(),
            "event": kind,
        }
        record.update(attrs)
        line = json.dumps(record, default=_json_default)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        """Return logged events, oldest first; the last `limit` only if given."""
        if not self.path.exists():
            return []
        with self._lock:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        records = []
        for line in lines:
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning("Skipping malformed event line in %s", self.path)
        if limit is not None:
            records = records[-limit:]
        return records


def safe_emit(bus, ctx, kind: str, attrs: dict[str, Any]) -> None:
    """Emit on bus, logging instead of raising when delivery fails."""
    if bus is None:
        return
    try:
        bus.emit(ctx, kind, attrs)
    except Exception as e:
        logger.warning("Failed to emit %s event: %s", kind, e)
