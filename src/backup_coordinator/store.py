"""Metadata store holding details manifests and backup records.

Records are JSON files laid out as <root>/<schema>/<model_store_id>.json.
A record is written once: put() refuses to replace an existing file.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any

from filelock import FileLock

from .__util__ import StoreError
from .model import SCHEMA_MODELS, Schema

logger = logging.getLogger(__name__)


class FileModelStore:
    """Write-once model store on the local filesystem."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser()
        self._lock_path = self.root / ".store.lock"

    def prepare(self) -> None:
        """Create the store directories."""
        try:
            for schema in Schema:
                (self.root / schema.value).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"cannot create model store at {self.root}: {e}") from e

    def _path(self, schema: Schema, model_store_id: str) -> Path:
        return self.root / schema.value / f"{model_store_id}.json"

    def put(self, ctx, schema: Schema, record: Any) -> None:
        """Persist record under schema.

        Assigns record.model_store_id (and record.id, when empty) before
        writing.

        Raises:
            StoreError: If the record exists already or cannot be written
        """
        if ctx is not None:
            ctx.check()
        if not isinstance(record, SCHEMA_MODELS[schema]):
            raise StoreError(
                f"record of type {type(record).__name__} does not match schema {schema}"
            )

        if not record.model_store_id:
            record.model_store_id = str(uuid.uuid4())
        if not record.id:
            record.id = record.model_store_id

        path = self._path(schema, record.model_store_id)
        payload = json.dumps(record.to_dict(), indent=2, sort_keys=True)

        self.prepare()
        try:
            with FileLock(str(self._lock_path)):
                # "x" fails if the record exists: records are never updated.
                with open(path, "x", encoding="utf-8") as f:
                    f.write(payload)
        except FileExistsError as e:
            raise StoreError(f"{schema} record {record.model_store_id} already exists") from e
        except OSError as e:
            raise StoreError(f"writing {schema} record: {e}") from e

        logger.debug("Stored %s record %s", schema, record.model_store_id)

    def get(self, schema: Schema, model_store_id: str) -> Any:
        """Load one record by its model store id.

        Raises:
            StoreError: If the record does not exist or cannot be parsed
        """
        path = self._path(schema, model_store_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise StoreError(f"{schema} record {model_store_id} not found") from e
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"reading {schema} record {model_store_id}: {e}") from e
        return SCHEMA_MODELS[schema].from_dict(data)

    def list(self, schema: Schema) -> list[Any]:
        """All records of schema; unreadable files are skipped with a warning."""
        directory = self.root / schema.value
        if not directory.is_dir():
            return []
        records = []
        for path in sorted(directory.glob("*.json")):
            try:
                records.append(self.get(schema, path.stem))
            except StoreError as e:
                logger.warning("Skipping record: %s", e)
        return records

    def find_backup(self, backup_id: str) -> Any:
        """Look up a backup record by its backup id (or model store id)."""
        for backup in self.list(Schema.BACKUP):
            if backup_id in (backup.id, backup.model_store_id):
                return backup
        raise StoreError(f"backup {backup_id} not found")
