"""Backup operation: drive one backup run from connection to stored records.

A run moves through CONNECTING, PRODUCING and CONSUMING. A failing phase
records its error in the read or write slot of the run's PhaseOutcome and
skips the phases after it. Finalization always runs exactly once. It
classifies the outcome, fills in the results, writes the details manifest
and the backup record, and emits the end event.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from .. import OPERATION_VERSION
from .. import events
from ..account import Account
from ..__util__ import (
    ConnectError,
    ConsumeError,
    InvalidOperationError,
    MissingManifestError,
    PersistenceError,
    ProduceError,
    wrap,
)
from ..data import resource_owner_set
from ..model import Schema, new_backup, new_stable_id
from ..progress import message_with_completion
from ..selectors import Selector
from .context import Context
from .interfaces import Connector, EventBus, MetadataStore, ProgressSurface, StorageEngine
from .operation import Operation, Options
from .stats import BackupResults, EngineStats, PhaseOutcome
from .status import OpStatus, Phase, classify_status

logger = logging.getLogger(__name__)


class BackupOperation(Operation):
    """One backup run of the data scoped by a selector.

    Attributes:
        results: Populated by run(), on success and failure alike
        selector: Scope of the backup
        version: Operation version marker
        phase: Current phase of the run
    """

    def __init__(
        self,
        options: Optional[Options],
        engine: Optional[StorageEngine],
        store: Optional[MetadataStore],
        connector: Optional[Connector],
        account: Account,
        selector: Optional[Selector],
        bus: Optional[EventBus] = None,
        progress: Optional[ProgressSurface] = None,
    ) -> None:
        """Construct and validate a backup operation.

        Raises:
            InvalidOperationError: If a handle is missing or the selector is empty
        """
        super().__init__(options, bus, engine, store, progress)
        self.connector = connector
        self.account = account
        self.selector = selector
        self.version = OPERATION_VERSION
        self.phase = Phase.NOT_STARTED
        self.results = BackupResults(backup_id=new_stable_id())
        self.validate()

    @property
    def backup_id(self) -> str:
        return self.results.backup_id

    def validate(self) -> None:
        super().validate()
        if self.connector is None:
            raise InvalidOperationError("missing data source connector")
        if self.selector is None:
            raise InvalidOperationError("missing selector")
        self.selector.validate()

    def _enter(self, phase: Phase) -> None:
        logger.debug("Backup %s: %s -> %s", self.backup_id, self.phase.value, phase.value)
        self.phase = phase

    def run(self, ctx: Optional[Context] = None) -> OpStatus:
        """Run the backup synchronously.

        Returns:
            The terminal status of the run

        Raises:
            MultiError: The run failed before its data was processed
            MissingManifestError: The storage engine returned no details manifest
            PersistenceError: The details or backup record could not be written
            InvalidOperationError: The operation has already been run
        """
        if self.phase is not Phase.NOT_STARTED:
            raise InvalidOperationError(f"backup {self.backup_id} has already run")

        ctx = ctx or Context()
        outcome = PhaseOutcome()
        start_time = datetime.now(timezone.utc)
        self.status = OpStatus.IN_PROGRESS

        logger.info(
            "Starting backup %s of %s (created %s)",
            self.backup_id,
            self.selector,
            self.created_at.isoformat(timespec="seconds"),
        )
        events.safe_emit(
            self.bus,
            ctx,
            events.BACKUP_START,
            {
                events.START_TIME: start_time,
                events.SERVICE: str(self.selector.service),
                events.BACKUP_ID: self.backup_id,
            },
        )

        error = None
        try:
            self._sequence(ctx, outcome)
        finally:
            error = self._finalize(ctx, start_time, outcome)

        if error is not None:
            raise error
        return self.status

    def _sequence(self, ctx: Context, outcome: PhaseOutcome) -> None:
        """Run the connect, produce and consume phases, recording failures in outcome."""
        self._enter(Phase.CONNECTING)
        try:
            ctx.check()
            connection = self.connector.connect(ctx, self.account, self.selector)
        except Exception as e:
            outcome.read_err = wrap(ConnectError, "connecting to source", e)
            logger.error("%s", outcome.read_err)
            return

        self._enter(Phase.PRODUCING)
        try:
            ctx.check()
            collections = produce_backup_collections(
                ctx, self.progress, self.connector, connection, self.selector
            )
        except Exception as e:
            outcome.read_err = wrap(ProduceError, "retrieving data to back up", e)
            logger.error("%s", outcome.read_err)
            return

        self._enter(Phase.CONSUMING)
        try:
            ctx.check()
            outcome.engine_stats, outcome.details = consume_backup_collections(
                ctx, self.progress, self.engine, self.selector, collections
            )
        except Exception as e:
            outcome.write_err = wrap(ConsumeError, "backing up service data", e)
            logger.error("%s", outcome.write_err)
            return

        logger.debug(
            "Backed up %d directories and %d files",
            outcome.engine_stats.total_directory_count,
            outcome.engine_stats.total_file_count,
        )

        outcome.resource_count = len(resource_owner_set(collections))
        outcome.started = True

        # The connector finishes counting only once its data was drained.
        try:
            outcome.connector_status = connection.await_status()
        except Exception as e:
            outcome.read_err = wrap(ProduceError, "awaiting connector status", e)
            logger.warning("%s", outcome.read_err)
            return

        if outcome.connector_status.error is not None:
            outcome.read_err = wrap(
                ProduceError, "reading source items", outcome.connector_status.error
            )
            logger.warning("%s", outcome.read_err)

    def _finalize(
        self, ctx: Context, start_time: datetime, outcome: PhaseOutcome
    ) -> Optional[BaseException]:
        """Classify, record and announce the run. Returns the error to surface."""
        self._enter(Phase.FINALIZING)

        # wait for the progress display to clean up
        try:
            self.progress.complete()
        except Exception as e:
            logger.warning("Progress display did not shut down cleanly: %s", e)

        classification = classify_status(outcome)
        self._persist_results(start_time, outcome, classification.status)

        error = classification.error
        if error is None:
            try:
                self._create_backup_models(
                    ctx, outcome.engine_stats.snapshot_id, outcome.details
                )
            except (MissingManifestError, PersistenceError) as e:
                logger.error("Backup %s: %s", self.backup_id, e)
                error = e

        self._emit_end(ctx, error)
        self._enter(Phase.DONE)

        logger.info(
            "Backup %s %s: %d items read, %d written, %d bytes uploaded",
            self.backup_id,
            self.status,
            self.results.items_read,
            self.results.items_written,
            self.results.bytes_uploaded,
        )
        return error

    def _persist_results(
        self, started: datetime, outcome: PhaseOutcome, status: OpStatus
    ) -> None:
        """Write the run's timestamps, status, errors and metrics to the results."""
        self.results.started_at = started
        self.results.completed_at = datetime.now(timezone.utc)
        self.status = status

        self.results.read_errors = outcome.read_err
        self.results.write_errors = outcome.write_err

        self.results.bytes_read = outcome.engine_stats.total_hashed_bytes
        self.results.bytes_uploaded = outcome.engine_stats.total_uploaded_bytes
        self.results.items_read = outcome.connector_status.successful
        self.results.items_written = outcome.engine_stats.total_file_count
        self.results.resource_owners = outcome.resource_count

    def _create_backup_models(self, ctx: Context, snapshot_id: str, details) -> None:
        """Store the details manifest, then the backup record referencing it.

        The writes are not transactional: if the backup record fails, the
        details record stays behind unreferenced.
        """
        if details is None:
            raise MissingManifestError("no backup details to record")

        try:
            self.store.put(ctx, Schema.BACKUP_DETAILS, details)
        except Exception as e:
            raise wrap(PersistenceError, "creating backup details model", e) from e

        backup = new_backup(
            snapshot_id,
            details.model_store_id,
            str(self.status),
            self.backup_id,
            self.selector,
            self.results.read_writes(),
            self.results.start_and_end(),
        )

        try:
            self.store.put(ctx, Schema.BACKUP, backup)
        except Exception as e:
            raise wrap(PersistenceError, "creating backup model", e) from e

        logger.debug(
            "Recorded backup %s (snapshot %s, details %s)",
            backup.id,
            snapshot_id,
            details.model_store_id,
        )

    def _emit_end(self, ctx: Context, error: Optional[BaseException]) -> None:
        attrs = {
            events.BACKUP_ID: self.backup_id,
            events.DATA_STORED: self.results.bytes_uploaded,
            events.DURATION: self.results.duration,
            events.END_TIME: self.results.completed_at,
            events.RESOURCES: self.results.resource_owners,
            events.SERVICE: self.selector.path_service(),
            events.START_TIME: self.results.started_at,
            events.STATUS: str(self.status),
        }
        if error is not None:
            attrs[events.ERROR] = str(error)
        events.safe_emit(self.bus, ctx, events.BACKUP_END, attrs)


def produce_backup_collections(ctx, progress, connector, connection, selector):
    """Ask the connector for the collections to back up."""
    with message_with_completion(progress, "Discovering items to back up:"):
        collections = connector.data_collections(ctx, connection, selector)
    logger.info("Found %d collection(s) to back up", len(collections))
    return collections


def consume_backup_collections(ctx, progress, engine, selector, collections):
    """Hand the collections to the storage engine.

    Returns:
        Tuple of (EngineStats, details manifest)
    """
    with message_with_completion(progress, "Backing up data:"):
        engine_stats, details = engine.backup_collections(
            ctx, collections, selector.path_service()
        )
    return engine_stats or EngineStats(), details
