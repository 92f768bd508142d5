"""Operation status, run phases, and the outcome classifier."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..__util__ import MultiError, OperationNotProcessedError
from .stats import PhaseOutcome


class OpStatus(Enum):
    """Status of an operation; the last three are terminal."""

    UNKNOWN = "Status Unknown"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    FAILED = "Failed"
    NO_DATA = "No Data"

    def __str__(self) -> str:
        return self.value

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OpStatus.COMPLETED, OpStatus.FAILED, OpStatus.NO_DATA})


class Phase(Enum):
    """Phases of a backup run, in execution order."""

    NOT_STARTED = "not-started"
    CONNECTING = "connecting"
    PRODUCING = "producing"
    CONSUMING = "consuming"
    FINALIZING = "finalizing"
    DONE = "done"


@dataclass(frozen=True)
class Classification:
    """Terminal status of a run and the error to surface, if any."""

    status: OpStatus
    error: Optional[BaseException] = None


def classify_status(outcome: PhaseOutcome) -> Classification:
    """Map the accumulated phase outcome to a terminal status.

    Runs that never completed the consume phase fail; the error surfaced
    for them aggregates a "not processed" error with the read and write
    errors so neither is lost. Runs that completed with no errors and no
    successfully read items report NO_DATA. Everything else is COMPLETED,
    partial errors included; those stay visible on the results.

    The function does not modify outcome.
    """
    if not outcome.started:
        return Classification(
            OpStatus.FAILED,
            MultiError(
                OperationNotProcessedError(
                    "errors prevented the operation from processing"
                ),
                outcome.read_err,
                outcome.write_err,
            ),
        )

    if (
        outcome.read_err is None
        and outcome.write_err is None
        and outcome.connector_status.successful == 0
    ):
        return Classification(OpStatus.NO_DATA)

    return Classification(OpStatus.COMPLETED)
