"""State and validation shared by all operations."""

from dataclasses import dataclass
from datetime import datetime, timezone

from ..__util__ import InvalidOperationError
from ..events import NullEventBus
from ..progress import NullProgressSurface
from .status import OpStatus


@dataclass
class Options:
    """Per-operation control options.

    Attributes:
        disable_metrics: Do not emit lifecycle events
        show_progress: Display progress while the run is in flight
    """

    disable_metrics: bool = False
    show_progress: bool = False


class Operation:
    """Handles and status common to every operation.

    The engine and store handles may be shared between operations; the
    operation itself is owned by a single caller.
    """

    def __init__(self, options, bus, engine, store, progress=None) -> None:
        self.created_at = datetime.now(timezone.utc)
        self.options = options or Options()
        self.status = OpStatus.UNKNOWN
        self.engine = engine
        self.store = store
        self.bus = NullEventBus() if bus is None or self.options.disable_metrics else bus
        self.progress = progress if progress is not None else NullProgressSurface()

    def validate(self) -> None:
        """Raise InvalidOperationError if a required handle is missing."""
        if self.engine is None:
            raise InvalidOperationError("missing storage engine")
        if self.store is None:
            raise InvalidOperationError("missing metadata store")
