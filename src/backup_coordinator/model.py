"""Persisted models: the details manifest and the backup summary record."""

import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from . import OPERATION_VERSION
from .core.stats import ReadWrites, StartAndEndTime
from .selectors import Selector


class Schema(Enum):
    """Kinds of records held by the metadata store."""

    BACKUP_DETAILS = "backup_details"
    BACKUP = "backup"

    def __str__(self) -> str:
        return self.value


def new_stable_id() -> str:
    return str(uuid.uuid4())


@dataclass
class BaseModel:
    """Identity shared by all stored models.

    Attributes:
        id: Stable identifier, chosen by the creator of the model
        model_store_id: Identifier assigned by the store on put()
        tags: Free-form labels used for lookups
    """

    id: str = ""
    model_store_id: str = ""
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class DetailsEntry:
    """One backed-up item.

    Attributes:
        repo_ref: Full path of the item inside the repository
        short_ref: Short, unique reference of the item
        resource_owner: Owner the item belongs to
        item_info: Descriptive metadata reported by the connector
    """

    repo_ref: str
    short_ref: str
    resource_owner: str = ""
    item_info: dict[str, Any] = field(default_factory=dict)


@dataclass
class Details(BaseModel):
    """Manifest of everything a backup stored. Safe to add() from several threads."""

    entries: list[DetailsEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def add(
        self,
        repo_ref: str,
        short_ref: str,
        resource_owner: str = "",
        item_info: Optional[dict[str, Any]] = None,
    ) -> DetailsEntry:
        entry = DetailsEntry(repo_ref, short_ref, resource_owner, item_info or {})
        with self._lock:
            self.entries.append(entry)
        return entry

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "model_store_id": self.model_store_id,
            "tags": dict(self.tags),
            "entries": [asdict(e) for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Details":
        return cls(
            id=data.get("id", ""),
            model_store_id=data.get("model_store_id", ""),
            tags=dict(data.get("tags", {})),
            entries=[DetailsEntry(**e) for e in data.get("entries", [])],
        )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class Backup(BaseModel):
    """Summary record of one backup run.

    Attributes:
        snapshot_id: Storage engine reference of the ingested data
        details_id: model_store_id of the details manifest
        status: Terminal status string of the run
        selector: Scope the run was started with
        read_writes: Item and byte counts
        times: Start and completion time of the run
        created_at: When this record was created
        version: Operation version that produced it
    """

    snapshot_id: str = ""
    details_id: str = ""
    status: str = ""
    selector: Selector = field(default_factory=Selector)
    read_writes: ReadWrites = field(default_factory=ReadWrites)
    times: StartAndEndTime = field(default_factory=StartAndEndTime)
    created_at: Optional[datetime] = None
    version: str = OPERATION_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "model_store_id": self.model_store_id,
            "tags": dict(self.tags),
            "snapshot_id": self.snapshot_id,
            "details_id": self.details_id,
            "status": self.status,
            "selector": self.selector.to_dict(),
            "read_writes": asdict(self.read_writes),
            "times": {
                "started_at": _iso(self.times.started_at),
                "completed_at": _iso(self.times.completed_at),
            },
            "created_at": _iso(self.created_at),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Backup":
        times = data.get("times", {})
        return cls(
            id=data.get("id", ""),
            model_store_id=data.get("model_store_id", ""),
            tags=dict(data.get("tags", {})),
            snapshot_id=data.get("snapshot_id", ""),
            details_id=data.get("details_id", ""),
            status=data.get("status", ""),
            selector=Selector.from_dict(data.get("selector", {})),
            read_writes=ReadWrites(**data.get("read_writes", {})),
            times=StartAndEndTime(
                started_at=_from_iso(times.get("started_at")),
                completed_at=_from_iso(times.get("completed_at")),
            ),
            created_at=_from_iso(data.get("created_at")),
            version=data.get("version", OPERATION_VERSION),
        )


def new_backup(
    snapshot_id: str,
    details_id: str,
    status: str,
    backup_id: str,
    selector: Selector,
    read_writes: ReadWrites,
    times: StartAndEndTime,
) -> Backup:
    """Create the summary record tying a run to its snapshot and details."""
    return Backup(
        id=backup_id,
        tags={"service": str(selector.service)},
        snapshot_id=snapshot_id,
        details_id=details_id,
        status=status,
        selector=selector,
        read_writes=read_writes,
        times=times,
        created_at=datetime.now(timezone.utc),
    )


SCHEMA_MODELS: dict[Schema, Any] = {
    Schema.BACKUP_DETAILS: Details,
    Schema.BACKUP: Backup,
}
