"""Shared utility functions for the PagerDuty CLI."""

import json
import os
import sys
from typing import Any, Dict, Optional

import click
import keyring
import requests

from .config import load_config

KEYRING_SERVICE = "pagerduty-cli"
KEYRING_TOKEN_KEY = "PAGERDUTY_TOKEN"
DEFAULT_API_URL = "https://api.pagerduty.com"


class ExitCodes:
    """Standard exit codes for CLI operations."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    INVALID_INPUT = 2
    NOT_FOUND = 3
    PERMISSION_DENIED = 4
    NETWORK_ERROR = 5


class CliError(Exception):
    """A fatal error that terminates the command with a specific exit code."""

    exit_code = ExitCodes.GENERAL_ERROR

    def __init__(self, message: str, exit_code: Optional[int] = None) -> None:
        """Initialize with a message and an optional exit code override.

        Args:
            message: Human readable description shown to the user
            exit_code: Exit code to terminate with (defaults to the class value)
        """
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidInputError(CliError):
    """The user supplied flags or values that cannot be used."""

    exit_code = ExitCodes.INVALID_INPUT


def handle_api_error(exc: Exception) -> None:
    """Handle errors with appropriate exit codes and consistent formatting.

    Args:
        exc: The exception to handle
    """
    if isinstance(exc, CliError):
        click.echo(f"✗ {exc}", err=True)
        sys.exit(exc.exit_code)

    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        status = exc.response.status_code
        if status == 404:
            click.echo(f"✗ Resource not found: {exc}", err=True)
            sys.exit(ExitCodes.NOT_FOUND)
        if status in (401, 403):
            click.echo(f"✗ Permission denied: {exc}", err=True)
            sys.exit(ExitCodes.PERMISSION_DENIED)

    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        click.echo(f"✗ Network error: {exc}", err=True)
        sys.exit(ExitCodes.NETWORK_ERROR)

    click.echo(f"✗ Error: {exc}", err=True)
    sys.exit(ExitCodes.GENERAL_ERROR)


def print_json_and_exit(data: Any) -> None:
    """Print data as indented JSON to stdout and exit successfully."""
    click.echo(json.dumps(data, indent=2))
    sys.exit(ExitCodes.SUCCESS)


# --- Credentials and endpoints ---
def get_base_url() -> str:
    """Retrieve the PagerDuty API base URL from environment or config file."""
    url = os.environ.get("PAGERDUTY_API_URL")
    if not url:
        url = load_config().get("api_url")
    return (url or DEFAULT_API_URL).rstrip("/")


def get_api_token() -> str:
    """Retrieve the PagerDuty API token from environment or keyring."""
    token = os.environ.get("PAGERDUTY_TOKEN")
    if not token:
        token = keyring.get_password(KEYRING_SERVICE, KEYRING_TOKEN_KEY)
    if not token:
        click.echo(
            "Error: API token not found. Please set the PAGERDUTY_TOKEN "
            "environment variable or run 'pd login'.",
            err=True,
        )
        raise click.ClickException("API token not found.")
    return token


def get_headers() -> Dict[str, str]:
    """Return headers for PagerDuty REST API requests."""
    return {
        "Authorization": f"Token token={get_api_token()}",
        "Accept": "application/vnd.pagerduty+json;version=2",
    }


def get_ssl_verify() -> bool:
    """Return SSL verification setting from environment variable. Defaults to True."""
    env = os.environ.get("PDCLI_SSL_VERIFY")
    if env is not None:
        return env.lower() not in ("0", "false", "no")
    return True


# --- API Request Utilities ---
def make_api_request(url: str, params: Optional[Any] = None) -> requests.Response:
    """GET an API endpoint with the configured headers and SSL setting.

    Args:
        url: API endpoint URL
        params: Query string parameters (a mapping or a list of pairs)

    Returns:
        Response object

    Raises:
        requests.RequestException: If the request fails or returns an error status
    """
    resp = requests.get(url, headers=get_headers(), params=params, verify=get_ssl_verify())
    resp.raise_for_status()
    return resp
