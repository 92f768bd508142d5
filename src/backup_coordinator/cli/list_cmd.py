"""List and show commands: inspect recorded backups."""

import argparse
import json
import logging

from rich.table import Table

from .. import __logger__, endpoint
from ..__util__ import StoreError
from ..model import Schema
from ..store import FileModelStore
from .common import load_cli_config

logger = logging.getLogger(__name__)


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    config = load_cli_config(args)
    if config is None:
        return 1

    store = FileModelStore(config.get_store_path())
    backups = sorted(
        store.list(Schema.BACKUP),
        key=lambda b: b.created_at.isoformat() if b.created_at else "",
    )

    service = getattr(args, "service", None)
    if service:
        backups = [b for b in backups if str(b.selector.service) == service]

    if getattr(args, "json", False):
        print(json.dumps([b.to_dict() for b in backups], indent=2))
        return 0

    if not backups:
        print("No backups recorded")
        return 0

    table = Table(title=f"Backups in {store.root}")
    table.add_column("ID")
    table.add_column("Created")
    table.add_column("Service")
    table.add_column("Owners")
    table.add_column("Status")
    table.add_column("Items", justify="right")
    table.add_column("Uploaded", justify="right")

    for b in backups:
        table.add_row(
            b.id,
            b.created_at.strftime("%Y-%m-%d %H:%M:%S") if b.created_at else "-",
            str(b.selector.service),
            ",".join(b.selector.resource_owners),
            b.status,
            str(b.read_writes.items_written),
            str(b.read_writes.bytes_uploaded),
        )

    __logger__.cons.print(table)
    return 0


def execute_show(args: argparse.Namespace) -> int:
    """Execute the show command: one backup record and its details."""
    config = load_cli_config(args)
    if config is None:
        return 1

    store = FileModelStore(config.get_store_path())
    try:
        backup = store.find_backup(args.backup_id)
        details = store.get(Schema.BACKUP_DETAILS, backup.details_id)
    except StoreError as e:
        logger.error("%s", e)
        return 1

    if getattr(args, "json", False):
        print(json.dumps({"backup": backup.to_dict(), "details": details.to_dict()}, indent=2))
        return 0

    print(f"Backup:     {backup.id}")
    print(f"Status:     {backup.status}")
    print(f"Selector:   {backup.selector}")
    print(f"Snapshot:   {backup.snapshot_id}")
    print(f"Started:    {backup.times.started_at}")
    print(f"Completed:  {backup.times.completed_at}")
    print(f"Duration:   {backup.times.duration:.1f}s")
    print(
        f"Items:      {backup.read_writes.items_read} read, "
        f"{backup.read_writes.items_written} written"
    )
    print(
        f"Bytes:      {backup.read_writes.bytes_read} read, "
        f"{backup.read_writes.bytes_uploaded} uploaded"
    )

    engine = endpoint.choose_engine(config.repository.path)
    snapshot = engine.load_snapshot(backup.snapshot_id)
    if snapshot is None:
        logger.warning("Snapshot %s not found in repository", backup.snapshot_id)

    if getattr(args, "entries", False):
        print("")
        for entry in details.entries:
            print(f"  {entry.short_ref}  {entry.repo_ref}")
    else:
        print(f"Entries:    {len(details)} (use --entries to list them)")

    return 0
