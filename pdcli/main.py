"""pdcli entry points."""

import getpass
from pathlib import Path
from typing import Optional

import click
import keyring
import tomllib
from keyring.errors import PasswordDeleteError

from .automation_click import register_automation_commands
from .config_click import register_config_commands
from .incident_click import register_incident_commands
from .utils import KEYRING_SERVICE, KEYRING_TOKEN_KEY


def get_version() -> str:
    """Get version from pyproject.toml."""
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            pyproject_data = tomllib.load(f)
        return pyproject_data["tool"]["poetry"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return "unknown"


CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@click.group(context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="Show version and exit")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """PagerDuty CLI (pd) - list and report on PagerDuty resources."""
    if version:
        click.echo(f"pd version {get_version()}")
        ctx.exit()
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option("--token", help="PagerDuty REST API token")
def login(token: Optional[str]) -> None:
    """Store your PagerDuty API token securely in the system keyring."""
    if not token:
        token = getpass.getpass("Enter your PagerDuty API token: ")
    # Ensure token is a string now
    assert isinstance(token, str)
    if not token.strip():
        raise click.ClickException("API token cannot be empty.")

    keyring.set_password(KEYRING_SERVICE, KEYRING_TOKEN_KEY, token.strip())
    click.echo("✓ API token stored securely.")


@cli.command()
def logout() -> None:
    """Remove your stored PagerDuty API token."""
    try:
        keyring.delete_password(KEYRING_SERVICE, KEYRING_TOKEN_KEY)
    except PasswordDeleteError:
        click.echo("No stored API token found.")
        return
    click.echo("API token removed from system keyring.")


register_config_commands(cli)
register_incident_commands(cli)
register_automation_commands(cli)
