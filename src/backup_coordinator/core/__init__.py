"""Core of backup-coordinator: run state, results, and outcome classification.

The backup operation itself lives in core.backup; import it from there.
"""

from .context import Context
from .operation import Operation, Options
from .stats import (
    BackupResults,
    ConnectorStatus,
    EngineStats,
    PhaseOutcome,
    ReadWrites,
    StartAndEndTime,
)
from .status import Classification, OpStatus, Phase, classify_status

__all__ = [
    "Context",
    "Operation",
    "Options",
    "BackupResults",
    "ConnectorStatus",
    "EngineStats",
    "PhaseOutcome",
    "ReadWrites",
    "StartAndEndTime",
    "Classification",
    "OpStatus",
    "Phase",
    "classify_status",
]
