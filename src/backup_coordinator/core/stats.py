"""Statistics and result records gathered over a backup run."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Optional, TypeVar

T = TypeVar("T")


@dataclass
class EngineStats:
    """Counters reported by the storage engine after ingesting collections."""

    snapshot_id: str = ""
    total_hashed_bytes: int = 0
    total_uploaded_bytes: int = 0
    total_file_count: int = 0
    total_directory_count: int = 0
    error_count: int = 0


@dataclass
class ConnectorStatus:
    """Completion status reported by the connector once it has drained."""

    attempted: int = 0
    successful: int = 0
    folder_count: int = 0
    error: Optional[BaseException] = None


@dataclass
class Errs:
    """Independent read and write error slots."""

    read_errors: Optional[BaseException] = None
    write_errors: Optional[BaseException] = None


@dataclass
class ReadWrites:
    """Item and byte counts of a run."""

    bytes_read: int = 0
    bytes_uploaded: int = 0
    items_read: int = 0
    items_written: int = 0
    resource_owners: int = 0


@dataclass
class StartAndEndTime:
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration(self) -> float:
        """Seconds between start and completion, 0.0 if either is unset."""
        if self.started_at is None or self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()


@dataclass
class BackupResults(Errs, ReadWrites, StartAndEndTime):
    """Aggregated result of a backup operation."""

    backup_id: str = ""

    def read_writes(self) -> ReadWrites:
        return project(ReadWrites, self)

    def start_and_end(self) -> StartAndEndTime:
        return project(StartAndEndTime, self)


def project(cls: type[T], obj: Any) -> T:
    """Copy the fields of dataclass cls out of obj into a new cls instance."""
    return cls(**{f.name: getattr(obj, f.name) for f in fields(cls)})  # type: ignore[arg-type]


@dataclass
class PhaseOutcome:
    """Accumulator written by the phase sequencer and read by finalization.

    Every field has a usable default so finalization can read it no matter
    which phase the run stopped in.
    """

    started: bool = False
    read_err: Optional[BaseException] = None
    write_err: Optional[BaseException] = None
    resource_count: int = 0
    engine_stats: EngineStats = field(default_factory=EngineStats)
    connector_status: ConnectorStatus = field(default_factory=ConnectorStatus)
    details: Any = None
