"""Pytest configuration and shared fixtures."""

from unittest.mock import MagicMock

import pytest

from backup_coordinator.account import Account
from backup_coordinator.core.stats import ConnectorStatus, EngineStats
from backup_coordinator.data import DataCollection, DataItem
from backup_coordinator.events import RecordingEventBus
from backup_coordinator.model import Details
from backup_coordinator.progress import NullProgressSurface
from backup_coordinator.selectors import Selector, Service


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def source_tree(tmp_path):
    """Create a source tree with two resource owners."""
    root = tmp_path / "source"
    (root / "alice" / "mail" / "inbox").mkdir(parents=True)
    (root / "alice" / "contacts").mkdir(parents=True)
    (root / "bob" / "mail").mkdir(parents=True)
    (root / "alice" / "mail" / "inbox" / "msg-1.eml").write_bytes(b"hello alice")
    (root / "alice" / "mail" / "inbox" / "msg-2.eml").write_bytes(b"second message")
    (root / "alice" / "contacts" / "carol.vcf").write_bytes(b"BEGIN:VCARD")
    (root / "bob" / "mail" / "msg-1.eml").write_bytes(b"hello bob")
    (root / "bob" / ".hidden").write_bytes(b"skip me")
    return root


@pytest.fixture
def sample_config_toml(tmp_path, source_tree):
    """Return a sample valid TOML configuration string."""
    return f"""
[global]
show_progress = false
event_log = "{tmp_path / 'state' / 'events.jsonl'}"

[account]
provider = "local"
tenant_id = "example"

[source]
path = "{source_tree}"

[repository]
path = "{tmp_path / 'repository'}"

[[backups]]
name = "alice-mail"
service = "exchange"
resource_owners = ["alice"]
categories = ["mail"]

[[backups]]
name = "everything"
service = "files"
resource_owners = ["*"]

[[backups]]
name = "disabled"
service = "onedrive"
resource_owners = ["bob"]
enabled = false
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[source]
path = "/srv/data"

[repository]
path = "/mnt/backup"
"""


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path


def _make_collections(owner: str, count: int) -> list[DataCollection]:
    """Collections of one owner, each with a single in-memory item."""
    return [
        DataCollection(
            resource_owner=owner,
            path=[owner, f"folder-{i}"],
            items_source=lambda i=i: [DataItem(uuid=f"item-{i}", reader=lambda: b"x")],
        )
        for i in range(count)
    ]


@pytest.fixture
def make_collections():
    """Factory building in-memory collections for one owner."""
    return _make_collections


@pytest.fixture
def selector():
    return Selector(service=Service.EXCHANGE, resource_owners=["alice"], name="alice")


@pytest.fixture
def account():
    return Account(provider="local", tenant_id="tenant")


@pytest.fixture
def connection():
    """Connection whose connector reports 42 successful items."""
    conn = MagicMock()
    conn.await_status.return_value = ConnectorStatus(attempted=42, successful=42)
    return conn


@pytest.fixture
def connector(connection):
    mock_connector = MagicMock()
    mock_connector.connect.return_value = connection
    mock_connector.data_collections.return_value = _make_collections("alice", 3)
    return mock_connector


@pytest.fixture
def engine():
    mock_engine = MagicMock()
    mock_engine.backup_collections.return_value = (
        EngineStats(
            snapshot_id="snap-1",
            total_hashed_bytes=1200,
            total_uploaded_bytes=1000,
            total_file_count=42,
            total_directory_count=3,
        ),
        Details(),
    )
    return mock_engine


@pytest.fixture
def store():
    return MagicMock()


@pytest.fixture
def bus():
    return RecordingEventBus()


@pytest.fixture
def progress():
    return NullProgressSurface()
