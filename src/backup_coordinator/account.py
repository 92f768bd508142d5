"""Account: the credential context a backup connects with."""

from dataclasses import dataclass, field


@dataclass
class Account:
    """Provider account used to reach the data source.

    Attributes:
        provider: Provider name (e.g. "local", "m365")
        tenant_id: Tenant or organisation identifier
        credentials: Provider specific secrets; never logged
    """

    provider: str = "local"
    tenant_id: str = ""
    credentials: dict[str, str] = field(default_factory=dict, repr=False)

    def __str__(self) -> str:
        if self.tenant_id:
            return f"{self.provider}:{self.tenant_id}"
        return self.provider
