"""CLI commands for PagerDuty Automation Actions."""

from typing import Any, Dict, List, Mapping, Optional

import click

from .cli_formatters import format_timestamp
from .cli_utils import listing_options, pop_listing_options
from .columns import ColumnDescriptor, OutputMode, dig, require_references
from .listing import EmptyResultPolicy, handle_empty, render_listing, validate_output_flags
from .pd_client import PagerDutyClient
from .utils import ExitCodes, handle_api_error

ACTIONS_EMPTY = EmptyResultPolicy(
    "No actions found. Please check your search.", exit_code=ExitCodes.GENERAL_ERROR
)


def action_columns(runners: Mapping[str, Mapping[str, Any]]) -> List[ColumnDescriptor]:
    """Built-in columns for automation actions.

    Args:
        runners: Automation runners keyed by runner ID
    """
    return [
        ColumnDescriptor("id", header="ID"),
        ColumnDescriptor("name"),
        ColumnDescriptor("description", extended=True),
        ColumnDescriptor(
            "created_at",
            get=lambda row: format_timestamp(row.get("creation_time")),
            extended=True,
        ),
        ColumnDescriptor("last_run", get=lambda row: format_timestamp(row.get("last_run"))),
        ColumnDescriptor(
            "last_modified",
            get=lambda row: format_timestamp(row.get("modify_time")),
            extended=True,
        ),
        ColumnDescriptor("type", get=lambda row: dig(row, "action_type")),
        ColumnDescriptor("category", get=lambda row: dig(row, "action_classification")),
        ColumnDescriptor("runner_id", get=lambda row: dig(row, "runner")),
        ColumnDescriptor(
            "runner_name", get=lambda row: dig(runners, dig(row, "runner"), "name")
        ),
    ]


def register_automation_commands(cli: Any) -> None:
    """Register the 'automation' command group and its subcommands.

    Args:
        cli: Click CLI group to register commands on.
    """

    @cli.group()
    def automation() -> None:
        """Work with PagerDuty Automation."""

    @automation.group()
    def action() -> None:
        """Automation Actions."""

    @action.command(name="list")
    @click.option("--name", "-n", help="Select actions whose names contain the given text")
    @click.option("--limit", type=click.IntRange(min=1), help="Maximum number of actions")
    @listing_options(pipe_help="Print action IDs only to stdout, for use with pipes.")
    def list_actions(name: Optional[str], limit: Optional[int], **kwargs: Any) -> None:
        """List PagerDuty Automation Actions."""
        options = pop_listing_options(kwargs)
        try:
            mode = validate_output_flags(options)
            params: Dict[str, Any] = {}
            if name:
                params["name"] = name

            client = PagerDutyClient()
            runners = client.fetch_with_progress(
                "automation_actions/runners", {}, activity="Getting runners"
            )
            runners_by_id = {r["id"]: r for r in runners if r.get("id")}
            actions = client.fetch_with_progress(
                "automation_actions/actions",
                params,
                activity="Getting automation actions",
                limit=limit,
            )
        except Exception as exc:  # noqa: BLE001
            handle_api_error(exc)
            return

        handle_empty(actions, ACTIONS_EMPTY)
        try:
            if mode is not OutputMode.JSON:
                require_references(actions, "runner", runners_by_id, "Runner")
            render_listing(actions, action_columns(runners_by_id), options, mode)
        except Exception as exc:  # noqa: BLE001
            handle_api_error(exc)
