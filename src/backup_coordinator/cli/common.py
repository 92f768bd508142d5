"""Shared CLI utilities and argument parsers."""

import argparse
import logging
import os

from ..__logger__ import create_logger
from ..config import BackupConfig, Config, ConfigError, find_config_file, load_config
from ..selectors import Selector, Service

logger = logging.getLogger(__name__)


def create_global_parser() -> argparse.ArgumentParser:
    """Create a parser with global options that can be used as a parent."""
    parser = argparse.ArgumentParser(add_help=False)
    add_verbosity_args(parser)
    return parser


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_progress_args(parser: argparse.ArgumentParser) -> None:
    """Add progress display arguments to a parser."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--progress",
        dest="progress",
        action="store_true",
        default=None,
        help="Show progress while backups run (overrides config)",
    )
    group.add_argument(
        "--no-progress",
        dest="progress",
        action="store_false",
        help="Do not show progress (overrides config)",
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def load_cli_config(args: argparse.Namespace) -> Config | None:
    """Set up logging and load the configuration for a command.

    Returns:
        The loaded Config, or None after reporting why it could not be loaded
    """
    create_logger(level=get_log_level(args))

    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found.")
            print("Create one with: backup-coordinator config init")
            return None

        logger.debug("Loading configuration from: %s", config_path)
        config, warnings = load_config(config_path)

        for warning in warnings:
            logger.warning("Config: %s", warning)

    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return None

    if config.global_config.log_file:
        create_logger(
            level=get_log_level(args),
            log_file=os.path.expanduser(config.global_config.log_file),
        )

    return config


def selector_for(backup: BackupConfig) -> Selector:
    """Selector scoping a run of one configured backup."""
    return Selector(
        service=Service.parse(backup.service),
        resource_owners=list(backup.resource_owners),
        categories=list(backup.categories),
        name=backup.name,
    )
