"""Configuration utilities for the Syncthing Monitor CLI.

This module provides the settings file helpers shared across CLI commands.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from syncthing_monitor.core.config import ConfigError, ConnectionSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_config_dir() -> Path:
    """Get the configuration directory for Syncthing Monitor.

    Returns:
        Path to ~/.syncthing-monitor or equivalent.
    """
    return Path.home() / ".syncthing-monitor"


def get_config_file() -> Path:
    """Get the path to the settings file."""
    return get_config_dir() / "settings.json"


def load_settings() -> ConnectionSettings:
    """Load settings from the settings file.

    A missing file yields the default settings.

    Raises:
        ConfigError: If the file cannot be read or is not a JSON object.
    """
    config_file = get_config_file()
    if not config_file.exists():
        return ConnectionSettings()

    try:
        data = json.loads(config_file.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid settings file {config_file}: expected a JSON object")
    return ConnectionSettings.from_dict(data)


def save_settings(settings: ConnectionSettings) -> None:
    """Save settings to the settings file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(settings.to_dict(), indent=2))


def load_settings_or_exit() -> ConnectionSettings:
    """Load settings, exiting with an error message if they are invalid."""
    try:
        return load_settings()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def configure_logging(verbose: bool) -> None:
    """Set the package log level; DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("syncthing_monitor").setLevel(
        logging.DEBUG if verbose else logging.WARNING
    )
