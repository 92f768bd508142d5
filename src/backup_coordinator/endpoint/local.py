# pyright: standard

"""backup-coordinator: backup_coordinator/endpoint/local.py
Data source and storage engine on the local filesystem.

Source layout: every directory directly below the source root is a
resource owner; every directory below an owner that holds files is a
collection of those files. The first path segment under the owner is the
collection's category.

Repository layout: item content lives in objects/<sha256[:2]>/<sha256>;
each backup writes snapshots/<snapshot_id>.json listing what it stored.
"""

import hashlib
import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from filelock import FileLock

from ..__util__ import MultiError
from ..data import DataCollection, DataItem
from ..model import Details
from ..core.stats import ConnectorStatus, EngineStats
from .common import Endpoint

logger = logging.getLogger(__name__)


class LocalConnection:
    """Connection to a local source tree; counts items as they are read."""

    def __init__(self, root: Path, owners: list[str]) -> None:
        self.root = root
        self.owners = owners
        self._lock = threading.Lock()
        self._attempted = 0
        self._successful = 0
        self._folders = 0
        self._errors: list[BaseException] = []

    def add_folder(self) -> None:
        with self._lock:
            self._folders += 1

    def reader(self, path: Path):
        """Reader for path that reports success or failure to this connection."""

        def read() -> bytes:
            with self._lock:
                self._attempted += 1
            try:
                data = path.read_bytes()
            except OSError as e:
                with self._lock:
                    self._errors.append(e)
                raise
            with self._lock:
                self._successful += 1
            return data

        return read

    def await_status(self) -> ConnectorStatus:
        with self._lock:
            error = None
            if self._errors:
                error = self._errors[0] if len(self._errors) == 1 else MultiError(*self._errors)
            return ConnectorStatus(
                attempted=self._attempted,
                successful=self._successful,
                folder_count=self._folders,
                error=error,
            )


class LocalConnector(Endpoint):
    """Connector reading a directory tree of resource owners."""

    def _prepare(self) -> None:
        root = self.config["path"]
        if root is None or not Path(root).is_dir():
            raise FileNotFoundError(f"source directory not found: {root}")

    def _visible(self, path: Path) -> bool:
        if self.config["skip_hidden"] and path.name.startswith("."):
            return False
        if path.is_symlink() and not self.config["follow_symlinks"]:
            return False
        return True

    def connect(self, ctx, account, selector) -> LocalConnection:
        """Open the source tree and resolve the selector's resource owners.

        Raises:
            FileNotFoundError: If the source or a named owner does not exist
        """
        self.prepare()
        ctx.check()
        root = Path(self.config["path"])

        available = sorted(
            p.name for p in root.iterdir() if p.is_dir() and self._visible(p)
        )
        if selector.selects_all_owners():
            owners = available
        else:
            missing = [o for o in selector.resource_owners if o not in available]
            if missing:
                raise FileNotFoundError(f"unknown resource owner(s): {', '.join(missing)}")
            owners = [o for o in available if selector.includes_owner(o)]

        logger.debug("Connected to %s as %s; owners: %s", root, account, owners)
        return LocalConnection(root, owners)

    def data_collections(self, ctx, connection: LocalConnection, selector) -> list[DataCollection]:
        """Enumerate one collection per directory holding files."""
        collections = []
        for owner in connection.owners:
            owner_root = connection.root / owner
            for dirpath, dirnames, filenames in os.walk(
                owner_root, followlinks=self.config["follow_symlinks"]
            ):
                ctx.check()
                current = Path(dirpath)
                dirnames[:] = sorted(d for d in dirnames if self._visible(current / d))
                files = sorted(
                    current / f for f in filenames if self._visible(current / f)
                )
                if not files:
                    continue

                rel = current.relative_to(owner_root).parts
                category = rel[0] if rel else ""
                if not selector.includes_category(category):
                    continue

                connection.add_folder()
                collections.append(
                    DataCollection(
                        resource_owner=owner,
                        path=[owner, *rel],
                        items_source=self._items(connection, files),
                        category=category,
                    )
                )
        return collections

    def _items(self, connection: LocalConnection, files: list[Path]):
        def source():
            for path in files:
                try:
                    stat = path.stat()
                except OSError as e:
                    logger.warning("Cannot stat %s: %s", path, e)
                    continue
                yield DataItem(
                    uuid=path.name,
                    reader=connection.reader(path),
                    size=stat.st_size,
                    info={
                        "name": path.name,
                        "modified": datetime.fromtimestamp(
                            stat.st_mtime, tz=timezone.utc
                        ).isoformat(),
                    },
                )

        return source


class LocalStorageEngine(Endpoint):
    """Storage engine keeping content-addressed objects in a local repository."""

    def _prepare(self) -> None:
        root = Path(self.config["path"])
        for sub in ("objects", "snapshots"):
            (root / sub).mkdir(parents=True, exist_ok=True, mode=0o700)

    def _object_path(self, digest: str) -> Path:
        return Path(self.config["path"]) / "objects" / digest[:2] / digest

    def _write_object(self, digest: str, data: bytes) -> bool:
        """Store data under digest. False if the object already existed."""
        path = self._object_path(digest)
        if path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{digest}.{uuid.uuid4().hex}.tmp")
        tmp.write_bytes(data)
        os.replace(tmp, path)
        return True

    def backup_collections(self, ctx, collections, service: str):
        """Ingest every item of collections.

        Items that cannot be read are skipped and counted in error_count.

        Returns:
            Tuple of (EngineStats, Details)
        """
        self.prepare()
        stats = EngineStats(snapshot_id=uuid.uuid4().hex)
        details = Details()
        objects: dict[str, str] = {}

        lock_path = Path(self.config["path"]) / self.config["lock_file_name"]
        with FileLock(str(lock_path)):
            for collection in collections:
                ctx.check()
                stats.total_directory_count += 1
                for item in collection.items():
                    ctx.check()
                    try:
                        data = item.read()
                    except OSError as e:
                        logger.warning("Skipping %s/%s: %s", collection.full_path(), item.uuid, e)
                        stats.error_count += 1
                        continue

                    digest = hashlib.sha256(data).hexdigest()
                    stats.total_hashed_bytes += len(data)
                    if self._write_object(digest, data):
                        stats.total_uploaded_bytes += len(data)
                    stats.total_file_count += 1

                    repo_ref = f"{service}/{collection.full_path()}/{item.uuid}"
                    objects[repo_ref] = digest
                    details.add(
                        repo_ref=repo_ref,
                        short_ref=hashlib.sha256(repo_ref.encode()).hexdigest()[:16],
                        resource_owner=collection.resource_owner,
                        item_info={**item.info, "size": len(data), "sha256": digest},
                    )

            self._write_snapshot(stats.snapshot_id, service, objects)

        logger.debug(
            "Snapshot %s: %d files, %d bytes hashed, %d bytes uploaded",
            stats.snapshot_id,
            stats.total_file_count,
            stats.total_hashed_bytes,
            stats.total_uploaded_bytes,
        )
        return stats, details

    def _write_snapshot(self, snapshot_id: str, service: str, objects: dict[str, str]) -> None:
        manifest = {
            "snapshot_id": snapshot_id,
            "service": service,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "objects": objects,
        }
        path = Path(self.config["path"]) / "snapshots" / f"{snapshot_id}.json"
        path.write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf-8")

    def load_snapshot(self, snapshot_id: str) -> Optional[dict]:
        path = Path(self.config["path"]) / "snapshots" / f"{snapshot_id}.json"
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))
