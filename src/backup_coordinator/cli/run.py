"""Run command: Execute all configured backups."""

import argparse
import logging
import time

from rich.table import Table

from .. import __util__, endpoint
from .. import __logger__
from ..account import Account
from ..config import BackupConfig, Config
from ..core import Context, OpStatus, Options
from ..core.backup import BackupOperation
from ..events import JsonlEventBus
from ..progress import NullProgressSurface, RichProgressSurface
from ..store import FileModelStore
from .common import load_cli_config, selector_for

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    config = load_cli_config(args)
    if config is None:
        return 1

    backups = config.get_enabled_backups()
    only = getattr(args, "backup", None)
    if only:
        backups = [b for b in backups if b.name in only]
    if not backups:
        logger.error("No backups to run")
        return 1

    if getattr(args, "dry_run", False):
        return _dry_run(config, backups)

    show_progress = getattr(args, "progress", None)
    if show_progress is None:
        show_progress = config.global_config.show_progress

    connector = endpoint.choose_connector(
        config.source.path,
        {
            "skip_hidden": config.source.skip_hidden,
            "follow_symlinks": config.source.follow_symlinks,
        },
    )
    engine = endpoint.choose_engine(config.repository.path)
    store = FileModelStore(config.get_store_path())
    bus = JsonlEventBus(config.global_config.event_log) if config.global_config.event_log else None
    account = Account(
        provider=config.account.provider,
        tenant_id=config.account.tenant_id,
        credentials=dict(config.account.credentials),
    )
    options = Options(
        disable_metrics=config.global_config.disable_metrics,
        show_progress=show_progress,
    )

    logger.info(__util__.log_heading(f"Started at {time.ctime()}"))
    logger.info("Running %d backup(s)", len(backups))

    ctx = Context()
    results = []
    try:
        for backup in backups:
            results.append(
                _run_backup(ctx.child(), backup, options, engine, store, connector, account, bus)
            )
    except KeyboardInterrupt:
        logger.error("Backup run aborted by user")
        return 1

    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))
    _print_summary(results)

    failed = sum(1 for _, op, _ in results if op is None or op.status is OpStatus.FAILED)
    if failed:
        logger.warning("Completed with errors: %d of %d backup(s) failed", failed, len(results))
        return 1
    logger.info("All %d backup(s) completed", len(results))
    return 0


def _run_backup(ctx, backup, options, engine, store, connector, account, bus):
    """Run one configured backup.

    Returns:
        Tuple of (backup name, BackupOperation or None if it could not be
        built, error message or None)
    """
    logger.info(__util__.log_heading(f"Backup: {backup.name}"))

    progress = (
        RichProgressSurface(console=__logger__.cons)
        if options.show_progress
        else NullProgressSurface()
    )
    try:
        op = BackupOperation(
            options,
            engine,
            store,
            connector,
            account,
            selector_for(backup),
            bus=bus,
            progress=progress,
        )
    except __util__.ValidationError as e:
        logger.error("Backup %s is invalid: %s", backup.name, e)
        return backup.name, None, str(e)

    try:
        op.run(ctx)
    except __util__.BackupCoordinatorError as e:
        logger.error("Backup %s failed: %s", backup.name, e)
        return backup.name, op, str(e)

    return backup.name, op, None


def _dry_run(config: Config, backups: list[BackupConfig]) -> int:
    """Show what would be done without making changes."""
    print("Dry run mode - showing what would be done:")
    print("")
    print(f"Source: {config.source.path}")
    print(f"Repository: {config.repository.path}")
    print(f"Metadata store: {config.get_store_path()}")
    print("")

    for backup in backups:
        selector = selector_for(backup)
        print(f"Backup: {backup.name}")
        print(f"  Service: {selector.service}")
        print(f"  Resource owners: {', '.join(selector.resource_owners) or '(none)'}")
        if selector.categories:
            print(f"  Categories: {', '.join(selector.categories)}")
        print("")

    return 0


def _print_summary(results) -> None:
    table = Table(title="Backup summary")
    table.add_column("Backup")
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Items", justify="right")
    table.add_column("Uploaded", justify="right")
    table.add_column("Owners", justify="right")
    table.add_column("Error")

    for name, op, error in results:
        if op is None:
            table.add_row(name, "-", "[red]Invalid", "-", "-", "-", error or "")
            continue
        style = {
            OpStatus.COMPLETED: "green",
            OpStatus.NO_DATA: "yellow",
            OpStatus.FAILED: "red",
        }.get(op.status, "white")
        partial = op.results.read_errors or op.results.write_errors
        table.add_row(
            name,
            op.backup_id,
            f"[{style}]{op.status}",
            str(op.results.items_written),
            str(op.results.bytes_uploaded),
            str(op.results.resource_owners),
            error or (str(partial) if partial else ""),
        )

    __logger__.cons.print(table)
