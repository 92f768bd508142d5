"""Tests for the backup operation run."""

import logging
import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from filelock import FileLock

from backup_coordinator import events
from backup_coordinator.__util__ import (
    ConnectError,
    ConsumeError,
    InvalidOperationError,
    MissingManifestError,
    MultiError,
    OperationCancelledError,
    OperationNotProcessedError,
    PersistenceError,
    ProduceError,
    StoreError,
)
from backup_coordinator.core import Context, OpStatus, Options, Phase
from backup_coordinator.core.backup import BackupOperation
from backup_coordinator.core.stats import ConnectorStatus, EngineStats
from backup_coordinator.events import JsonlEventBus
from backup_coordinator.model import Details, Schema
from backup_coordinator.selectors import Selector, Service
from backup_coordinator.store import FileModelStore


@pytest.fixture
def make_op(engine, store, connector, account, selector, bus, progress):
    """Build a BackupOperation from the shared fixtures, with overrides."""

    def _make(**overrides):
        kwargs = dict(
            options=Options(),
            engine=engine,
            store=store,
            connector=connector,
            account=account,
            selector=selector,
            bus=bus,
            progress=progress,
        )
        kwargs.update(overrides)
        return BackupOperation(**kwargs)

    return _make


class TestConstruction:
    """Tests for operation identity and validation."""

    def test_assigns_unique_backup_ids(self, make_op):
        first = make_op()
        second = make_op()
        assert first.backup_id
        assert first.backup_id != second.backup_id

    def test_initial_state(self, make_op):
        op = make_op()
        assert op.version == "v0"
        assert op.status is OpStatus.UNKNOWN
        assert op.phase is Phase.NOT_STARTED
        assert op.results.started_at is None

    def test_construction_has_no_side_effects(self, make_op, connector, engine, store, bus):
        make_op()
        connector.connect.assert_not_called()
        engine.backup_collections.assert_not_called()
        store.put.assert_not_called()
        assert bus.events == []

    @pytest.mark.parametrize("missing", ["engine", "store", "connector", "selector"])
    def test_missing_handle(self, make_op, missing):
        with pytest.raises(InvalidOperationError, match="missing"):
            make_op(**{missing: None})

    def test_empty_selector(self, make_op):
        with pytest.raises(InvalidOperationError, match="resource owners"):
            make_op(selector=Selector(service=Service.EXCHANGE))

    def test_unknown_service(self, make_op):
        with pytest.raises(InvalidOperationError, match="service"):
            make_op(selector=Selector(resource_owners=["alice"]))


class TestSuccessfulRun:
    """Tests for runs that complete."""

    def test_completed_scenario(self, make_op, store):
        op = make_op()

        status = op.run()

        assert status is OpStatus.COMPLETED
        assert op.status is OpStatus.COMPLETED
        assert op.results.items_written == 42
        assert op.results.items_read == 42
        assert op.results.bytes_uploaded == 1000
        assert op.results.bytes_read == 1200
        assert op.results.resource_owners == 1
        assert op.results.read_errors is None
        assert op.results.write_errors is None

        schemas = [c.args[1] for c in store.put.call_args_list]
        assert schemas == [Schema.BACKUP_DETAILS, Schema.BACKUP]
        backup = store.put.call_args_list[1].args[2]
        assert backup.snapshot_id == "snap-1"
        assert backup.id == op.backup_id
        assert backup.status == "Completed"
        assert backup.read_writes.items_written == 42

    def test_timestamps_set(self, make_op):
        op = make_op()
        before = datetime.now(timezone.utc)
        op.run()
        assert before <= op.results.started_at <= op.results.completed_at

    def test_phase_order_and_drained_status(self, make_op, connector, connection, engine):
        calls = MagicMock()
        calls.attach_mock(connector.connect, "connect")
        calls.attach_mock(connector.data_collections, "data_collections")
        calls.attach_mock(engine.backup_collections, "backup_collections")
        calls.attach_mock(connection.await_status, "await_status")

        make_op().run()

        names = [c[0] for c in calls.mock_calls]
        assert names == ["connect", "data_collections", "backup_collections", "await_status"]

    def test_engine_receives_path_service(self, make_op, engine):
        make_op().run()
        assert engine.backup_collections.call_args.args[2] == "exchange-mail"

    def test_distinct_resource_owners(self, make_op, connector, make_collections):
        connector.data_collections.return_value = make_collections(
            "alice", 2
        ) + make_collections("bob", 1)
        op = make_op()
        op.run()
        assert op.results.resource_owners == 2

    def test_lifecycle_events(self, make_op, bus):
        op = make_op()
        op.run()

        assert bus.kinds() == [events.BACKUP_START, events.BACKUP_END]
        start = bus.events[0][1]
        assert start[events.BACKUP_ID] == op.backup_id
        assert start[events.SERVICE] == "exchange"

        end = bus.events[1][1]
        assert end[events.STATUS] == "Completed"
        assert end[events.DATA_STORED] == 1000
        assert end[events.RESOURCES] == 1
        assert end[events.SERVICE] == "exchange-mail"
        assert events.ERROR not in end

    def test_records_in_file_store(self, make_op, tmp_path):
        store = FileModelStore(tmp_path / "models")
        op = make_op(store=store)
        op.run()

        backup = store.find_backup(op.backup_id)
        assert backup.snapshot_id == "snap-1"
        details = store.get(Schema.BACKUP_DETAILS, backup.details_id)
        assert isinstance(details, Details)


class TestNoData:
    """Tests for runs that find nothing to back up."""

    def test_zero_successful_items(self, make_op, connection, store):
        connection.await_status.return_value = ConnectorStatus(successful=0)
        op = make_op()

        status = op.run()

        assert status is OpStatus.NO_DATA
        assert op.results.read_errors is None
        assert op.results.write_errors is None
        assert store.put.call_count == 2


class TestFailedRun:
    """Tests for runs that fail before processing data."""

    def test_connection_failure(self, make_op, connector, store, bus):
        connector.connect.side_effect = RuntimeError("auth expired")
        op = make_op()

        with pytest.raises(MultiError) as exc_info:
            op.run()

        assert op.status is OpStatus.FAILED
        assert isinstance(op.results.read_errors, ConnectError)
        assert op.results.write_errors is None
        assert exc_info.value.contains(OperationNotProcessedError)
        assert exc_info.value.contains(ConnectError)
        assert "auth expired" in str(exc_info.value)
        assert "prevented the operation from processing" in str(exc_info.value)
        store.put.assert_not_called()
        connector.data_collections.assert_not_called()

        assert bus.kinds() == [events.BACKUP_START, events.BACKUP_END]
        end = bus.events[1][1]
        assert end[events.STATUS] == "Failed"
        assert end[events.DATA_STORED] == 0
        assert end[events.RESOURCES] == 0
        assert "auth expired" in end[events.ERROR]

    def test_connection_failure_sets_timestamps(self, make_op, connector):
        connector.connect.side_effect = RuntimeError("down")
        op = make_op()
        with pytest.raises(MultiError):
            op.run()
        assert op.results.started_at is not None
        assert op.results.completed_at >= op.results.started_at

    def test_enumeration_failure(self, make_op, connector, engine, store):
        connector.data_collections.side_effect = RuntimeError("throttled")
        op = make_op()

        with pytest.raises(MultiError):
            op.run()

        assert op.status is OpStatus.FAILED
        assert isinstance(op.results.read_errors, ProduceError)
        assert op.results.write_errors is None
        engine.backup_collections.assert_not_called()
        store.put.assert_not_called()

    def test_ingestion_failure(self, make_op, engine, connection, store):
        engine.backup_collections.side_effect = OSError("disk full")
        op = make_op()

        with pytest.raises(MultiError) as exc_info:
            op.run()

        assert op.status is OpStatus.FAILED
        assert isinstance(op.results.write_errors, ConsumeError)
        assert op.results.read_errors is None
        assert exc_info.value.contains(ConsumeError)
        assert op.results.items_written == 0
        connection.await_status.assert_not_called()
        store.put.assert_not_called()

    def test_progress_closed_on_failure(self, make_op, connector, progress):
        connector.data_collections.side_effect = RuntimeError("boom")
        with pytest.raises(MultiError):
            make_op().run()
        assert progress.open_messages == 0

    def test_runs_only_once(self, make_op):
        op = make_op()
        op.run()
        with pytest.raises(InvalidOperationError):
            op.run()


class TestCancellation:
    """Tests for cancelled runs."""

    def test_cancelled_before_start(self, make_op, connector):
        ctx = Context()
        ctx.cancel()
        op = make_op()

        with pytest.raises(MultiError):
            op.run(ctx)

        assert op.status is OpStatus.FAILED
        assert isinstance(op.results.read_errors, ConnectError)
        assert isinstance(op.results.read_errors.__cause__, OperationCancelledError)
        connector.connect.assert_not_called()

    def test_cancelled_while_consuming(self, make_op, engine):
        engine.backup_collections.side_effect = OperationCancelledError("stop")
        op = make_op()

        with pytest.raises(MultiError):
            op.run(Context())

        assert isinstance(op.results.write_errors, ConsumeError)
        assert op.results.read_errors is None


class TestPartialErrors:
    """Tests for completed runs that carry errors."""

    def test_connector_error_keeps_completed(self, make_op, connection):
        connection.await_status.return_value = ConnectorStatus(
            attempted=43, successful=42, error=OSError("permission denied")
        )
        op = make_op()

        status = op.run()

        assert status is OpStatus.COMPLETED
        assert isinstance(op.results.read_errors, ProduceError)

    def test_await_status_failure_keeps_completed(self, make_op, connection):
        connection.await_status.side_effect = RuntimeError("lost")
        op = make_op()

        status = op.run()

        assert status is OpStatus.COMPLETED
        assert "lost" in str(op.results.read_errors)
        assert op.results.items_read == 0


class TestFinalization:
    """Tests for persistence failures."""

    def test_missing_manifest(self, make_op, engine, store, bus):
        engine.backup_collections.return_value = (EngineStats(snapshot_id="s"), None)
        op = make_op()

        with pytest.raises(MissingManifestError):
            op.run()

        assert op.status is OpStatus.COMPLETED
        assert op.results.read_errors is None
        assert op.results.write_errors is None
        store.put.assert_not_called()
        assert events.ERROR in bus.events[-1][1]

    def test_summary_write_failure_leaves_details(self, make_op, store):
        store.put.side_effect = [None, StoreError("disk full")]
        op = make_op()

        with pytest.raises(PersistenceError, match="creating backup model"):
            op.run()

        assert store.put.call_count == 2
        assert store.put.call_args_list[0].args[1] is Schema.BACKUP_DETAILS

    def test_details_write_failure(self, make_op, store):
        store.put.side_effect = StoreError("read-only")
        op = make_op()

        with pytest.raises(PersistenceError, match="creating backup details model"):
            op.run()

        assert store.put.call_count == 1


class TestEvents:
    """Tests for event emission policy."""

    def test_bus_failure_does_not_stop_run(self, make_op):
        bus = MagicMock()
        bus.emit.side_effect = ConnectionError("bus down")
        op = make_op(bus=bus)

        assert op.run() is OpStatus.COMPLETED
        assert bus.emit.call_count == 2

    def test_disable_metrics(self, make_op):
        bus = MagicMock()
        op = make_op(bus=bus, options=Options(disable_metrics=True))
        op.run()
        bus.emit.assert_not_called()


class TestCollaboratorContracts:
    """Runs honour the bus and progress contracts on every path."""

    def test_held_event_log_lock_does_not_block_run(self, make_op, tmp_path):
        path = tmp_path / "events.jsonl"
        bus = JsonlEventBus(path, lock_timeout=0.1)
        op = make_op(bus=bus)
        result = {}

        with FileLock(str(path) + ".lock"):
            worker = threading.Thread(target=lambda: result.update(status=op.run()))
            worker.start()
            worker.join(timeout=10)

        assert not worker.is_alive()
        assert result["status"] is OpStatus.COMPLETED
        assert bus.read() == []

    @pytest.mark.parametrize("failing", ["data_collections", "backup_collections"])
    def test_done_signalled_when_phase_fails(self, make_op, connector, engine, failing):
        target = connector if failing == "data_collections" else engine
        getattr(target, failing).side_effect = RuntimeError("boom")
        signals = []
        surface = MagicMock()

        def begin_message(text):
            done = threading.Event()
            signals.append((text, done))
            return done, MagicMock()

        surface.begin_message.side_effect = begin_message

        with pytest.raises(MultiError):
            make_op(progress=surface).run()

        assert signals
        assert all(done.is_set() for _, done in signals)

    def test_start_logs_creation_time(self, make_op, caplog):
        op = make_op()
        with caplog.at_level(logging.INFO, logger="backup_coordinator.core.backup"):
            op.run()
        assert f"(created {op.created_at.isoformat(timespec='seconds')})" in caplog.text
        assert op.created_at <= op.results.started_at
