"""Contracts of the collaborators a backup operation drives."""

import threading
from typing import Any, Callable, Optional, Protocol

from ..account import Account
from ..data import DataCollection
from ..selectors import Selector
from .context import Context
from .stats import ConnectorStatus, EngineStats


class Connection(Protocol):
    """Live handle to a data source."""

    def await_status(self) -> ConnectorStatus:
        """Completion status; valid only after the produced data was drained."""
        ...


class Connector(Protocol):
    def connect(self, ctx: Context, account: Account, selector: Selector) -> Connection:
        ...

    def data_collections(
        self, ctx: Context, connection: Connection, selector: Selector
    ) -> list[DataCollection]:
        ...


class StorageEngine(Protocol):
    def backup_collections(
        self, ctx: Context, collections: list[DataCollection], service: str
    ) -> tuple[EngineStats, Any]:
        """Ingest collections; returns engine stats and the details manifest."""
        ...


class MetadataStore(Protocol):
    def put(self, ctx: Optional[Context], schema: Any, record: Any) -> None:
        ...


class EventBus(Protocol):
    def emit(self, ctx: Optional[Context], kind: str, attrs: dict[str, Any]) -> None:
        ...


class ProgressSurface(Protocol):
    def begin_message(self, text: str) -> tuple[threading.Event, Callable[..., None]]:
        ...

    def complete(self, timeout: Optional[float] = None) -> bool:
        ...
