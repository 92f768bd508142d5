"""Config command: Configuration management."""

import argparse
import logging

from ..__logger__ import create_logger
from ..__util__ import InvalidOperationError
from ..config import ConfigError, find_config_file, generate_example_config, load_config
from ..config import loader
from .common import get_log_level, selector_for

logger = logging.getLogger(__name__)


def execute_config(args: argparse.Namespace) -> int:
    """Execute the config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    log_level = get_log_level(args)
    create_logger(level=log_level)

    action = getattr(args, "config_action", None)

    if action == "validate":
        return _validate_config(args)
    elif action == "init":
        return _init_config(args)
    else:
        print("Usage: backup-coordinator config <validate|init>")
        return 1


def _validate_config(args: argparse.Namespace) -> int:
    """Validate configuration file and show the backups it defines."""
    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found.")
            print("Searched locations:")
            for path in loader.CONFIG_PATHS:
                print(f"  {path}")
            return 1

        print(f"Validating: {config_path}")
        config, warnings = load_config(config_path)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1

    for warning in warnings:
        print(f"  warning: {warning}")

    print(f"Source:         {config.source.path}")
    print(f"Repository:     {config.repository.path}")
    print(f"Metadata store: {config.get_store_path()}")
    print(f"Event log:      {config.global_config.event_log or '(disabled)'}")

    for backup in config.backups:
        selector = selector_for(backup)
        try:
            selector.validate()
            state = "enabled" if backup.enabled else "disabled"
        except InvalidOperationError as e:
            state = f"invalid: {e}"
        categories = ",".join(selector.categories) or "all categories"
        print(
            f"  {backup.name}: {selector} -> {selector.path_service()} "
            f"({categories}, {state})"
        )

    print(
        f"Configuration is valid: {len(config.get_enabled_backups())} of "
        f"{len(config.backups)} backup(s) enabled."
    )
    return 0


def _init_config(args: argparse.Namespace) -> int:
    """Generate example configuration."""
    content = generate_example_config()

    output = getattr(args, "output", None)
    if output:
        try:
            with open(output, "w") as f:
                f.write(content)
            print(f"Example configuration written to: {output}")
        except OSError as e:
            print(f"Error writing file: {e}")
            return 1
    else:
        print(content)

    return 0
