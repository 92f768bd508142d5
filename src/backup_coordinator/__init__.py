"""backup-coordinator: backup_coordinator/__init__.py."""

__version__ = "0.3.0"

# Version tag stamped on every operation and backup record.
OPERATION_VERSION = "v0"
