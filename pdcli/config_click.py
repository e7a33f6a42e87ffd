"""CLI commands for managing pdcli configuration."""

import json
import sys
from typing import Any

import click

from .config import (
    CONFIG_KEYS,
    get_config_file_path,
    load_config,
    remove_config_value,
    set_config_value,
)
from .utils import ExitCodes


def register_config_commands(cli: Any) -> None:
    """Register the 'config' command group and its subcommands."""

    @cli.group()
    def config() -> None:
        """Manage pdcli configuration (API URL, page size)."""
        pass

    @config.command(name="show")
    @click.option(
        "--format",
        "-f",
        type=click.Choice(["table", "json"]),
        default="table",
        help="Output format",
    )
    def show(format: str) -> None:
        """Show the current configuration."""
        cfg = load_config()
        if format == "json":
            click.echo(json.dumps(cfg, indent=2))
            return

        click.echo(f"Config file: {get_config_file_path()}")
        if not cfg:
            click.echo("No configuration values set.")
            return
        for key, value in cfg.items():
            click.echo(f"  {key}: {value}")

    @config.command(name="set")
    @click.argument("key", type=click.Choice(list(CONFIG_KEYS)))
    @click.argument("value")
    def set_value(key: str, value: str) -> None:
        """Set a configuration value."""
        try:
            stored = set_config_value(key, value)
        except ValueError as exc:
            click.echo(f"✗ {exc}", err=True)
            sys.exit(ExitCodes.INVALID_INPUT)
        click.echo(f"✓ {key} set to {stored}")

    @config.command(name="unset")
    @click.argument("key", type=click.Choice(list(CONFIG_KEYS)))
    def unset_value(key: str) -> None:
        """Remove a configuration value, restoring its default."""
        if remove_config_value(key):
            click.echo(f"✓ {key} removed")
        else:
            click.echo(f"{key} was not set.")
