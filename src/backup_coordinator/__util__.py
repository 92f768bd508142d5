# pyright: standard

"""backup-coordinator: backup_coordinator/__util__.py
Common errors and helpers shared by all modules.
"""

from typing import Optional


class BackupCoordinatorError(Exception):
    """Base class of every error raised by backup-coordinator."""


class ValidationError(BackupCoordinatorError):
    """A precondition did not hold before the run started."""


class InvalidOperationError(ValidationError):
    """The operation cannot be constructed or run as requested."""


class ConnectError(BackupCoordinatorError):
    """Establishing the connection to the data source failed."""


class ProduceError(BackupCoordinatorError):
    """Enumerating the data collections of the source failed."""


class ConsumeError(BackupCoordinatorError):
    """Ingesting the data collections into the storage engine failed."""


class OperationNotProcessedError(BackupCoordinatorError):
    """The run stopped before the data was processed."""


class MissingManifestError(BackupCoordinatorError):
    """Finalization was reached without a details manifest."""


class PersistenceError(BackupCoordinatorError):
    """Writing the details or summary record failed."""


class OperationCancelledError(BackupCoordinatorError):
    """The execution context was cancelled."""


class StoreError(BackupCoordinatorError):
    """Metadata store failure."""


class MultiError(BackupCoordinatorError):
    """An aggregate of several errors; empty slots are dropped on creation."""

    def __init__(self, *errors: Optional[BaseException]) -> None:
        self.errors: list[BaseException] = [e for e in errors if e is not None]
        super().__init__(self._format())

    def _format(self) -> str:
        if len(self.errors) == 1:
            return f"1 error occurred:\n\t* {self.errors[0]}"
        lines = "\n".join(f"\t* {e}" for e in self.errors)
        return f"{len(self.errors)} errors occurred:\n{lines}"

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def contains(self, kind: type[BaseException]) -> bool:
        """True if any aggregated error (or its cause) is an instance of kind."""
        return any(_matches(e, kind) for e in self.errors)


def _matches(err: Optional[BaseException], kind: type[BaseException]) -> bool:
    while err is not None:
        if isinstance(err, kind):
            return True
        err = err.__cause__
    return False


def wrap(kind: type[BackupCoordinatorError], message: str, err: BaseException):
    """Build a kind error reading 'message: err' that keeps err as its cause."""
    wrapped = kind(f"{message}: {err}")
    wrapped.__cause__ = err
    return wrapped


def log_heading(caption: str) -> str:
    """Formatted heading for logging output sections."""
    return f"--[ {caption} ]".ljust(60, "-")

