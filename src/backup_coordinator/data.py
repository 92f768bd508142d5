"""Data items and collections exchanged between connector and storage engine."""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator


@dataclass
class DataItem:
    """A single item of source data.

    Attributes:
        uuid: Identifier of the item inside its collection
        size: Size in bytes, when known up front
        info: Descriptive metadata copied into the details manifest
        reader: Callable returning the item's content
    """

    uuid: str
    reader: Callable[[], bytes]
    size: int = 0
    info: dict[str, Any] = field(default_factory=dict)

    def read(self) -> bytes:
        return self.reader()


@dataclass
class DataCollection:
    """A folder-like group of items belonging to one resource owner."""

    resource_owner: str
    path: list[str]
    items_source: Callable[[], Iterable[DataItem]] = lambda: ()
    category: str = ""

    def items(self) -> Iterator[DataItem]:
        yield from self.items_source()

    def full_path(self) -> str:
        return "/".join(self.path)


def resource_owner_set(collections: Iterable[DataCollection]) -> set[str]:
    """Distinct resource owners across the given collections."""
    return {c.resource_owner for c in collections}
