"""Selectors describe which data a backup run covers.

A selector names one service and the resource owners (users, sites,
mailboxes...) of that service whose data should be protected. Optional
categories narrow the scope inside each owner.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .__util__ import InvalidOperationError

# Wildcard resource owner: every owner the connector can see.
ANY_OWNER = "*"


class Service(Enum):
    """Services a selector can target."""

    UNKNOWN = "unknown"
    EXCHANGE = "exchange"
    ONEDRIVE = "onedrive"
    SHAREPOINT = "sharepoint"
    FILES = "files"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "Service":
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


# Storage path segment used for each service inside the repository.
_PATH_SERVICES = {
    Service.EXCHANGE: "exchange-mail",
    Service.ONEDRIVE: "onedrive-files",
    Service.SHAREPOINT: "sharepoint-libraries",
    Service.FILES: "files",
}


@dataclass
class Selector:
    """Scope of a backup run.

    Attributes:
        service: Service whose data is selected
        resource_owners: Owners to include; "*" selects all of them
        categories: Optional category names (e.g. "mail", "contacts")
        name: Human readable name of the selection
    """

    service: Service = Service.UNKNOWN
    resource_owners: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    name: str = ""

    def path_service(self) -> str:
        """Path segment the storage engine files this service's data under."""
        return _PATH_SERVICES.get(self.service, "unknown")

    def selects_all_owners(self) -> bool:
        return ANY_OWNER in self.resource_owners

    def includes_owner(self, owner: str) -> bool:
        return self.selects_all_owners() or owner in self.resource_owners

    def includes_category(self, category: str) -> bool:
        return not self.categories or category in self.categories

    def validate(self) -> None:
        """Raise InvalidOperationError if the selector cannot scope a run."""
        if self.service is Service.UNKNOWN:
            raise InvalidOperationError("selector has no known service")
        if not self.resource_owners:
            raise InvalidOperationError("selector has no resource owners")

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service.value,
            "resource_owners": list(self.resource_owners),
            "categories": list(self.categories),
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Selector":
        return cls(
            service=Service.parse(data.get("service", "")),
            resource_owners=list(data.get("resource_owners", [])),
            categories=list(data.get("categories", [])),
            name=data.get("name", ""),
        )

    def __str__(self) -> str:
        owners = ",".join(self.resource_owners) or "-"
        return f"{self.service}[{owners}]"
