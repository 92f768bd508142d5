"""Command line interface for backup-coordinator."""

from .dispatcher import main

__all__ = ["main"]
