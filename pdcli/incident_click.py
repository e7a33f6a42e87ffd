"""CLI commands for listing PagerDuty incidents and their log entries.

Provides ``incident list``, which turns status/urgency/assignee/team/service
and date filters into an incidents query, and ``incident log``, which shows
the log entries of incidents given by ID or piped in from ``incident list
--pipe``.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

import click

from .cli_formatters import (
    format_timestamp,
    join_values,
    style_priority,
    style_status,
    style_urgency,
)
from .cli_utils import listing_options, pop_listing_options, read_stdin_text
from .columns import ColumnDescriptor, OutputMode, dig
from .filters import (
    STATUS_CHOICES,
    URGENCY_CHOICES,
    IncidentFilters,
    resolve_ids,
    resolve_incident_params,
)
from .listing import EmptyResultPolicy, handle_empty, render_listing, validate_output_flags
from .pd_client import PagerDutyClient
from .utils import InvalidInputError, handle_api_error

INCIDENTS_EMPTY = EmptyResultPolicy("No incidents found. Please check your filters.")
LOG_ENTRIES_EMPTY = EmptyResultPolicy("No log entries found.")


def incident_columns(
    priorities: Mapping[str, Mapping[str, Any]], delimiter: str = "\n"
) -> List[ColumnDescriptor]:
    """Built-in columns for incidents.

    Args:
        priorities: Priority palette keyed by priority ID
        delimiter: Separator for assignees and teams
    """
    return [
        ColumnDescriptor("id", header="ID"),
        ColumnDescriptor("incident_number", header="#"),
        ColumnDescriptor("status", get=lambda row: style_status(row.get("status"))),
        ColumnDescriptor(
            "priority", get=lambda row: style_priority(row.get("priority"), priorities)
        ),
        ColumnDescriptor("urgency", get=lambda row: style_urgency(row.get("urgency"))),
        ColumnDescriptor("title"),
        ColumnDescriptor("created", get=lambda row: format_timestamp(row.get("created_at"))),
        ColumnDescriptor("service", get=lambda row: dig(row, "service", "summary")),
        ColumnDescriptor(
            "assigned_to",
            get=lambda row: join_values(
                (dig(a, "assignee", "summary") for a in row.get("assignments") or []), delimiter
            ),
        ),
        ColumnDescriptor(
            "teams",
            get=lambda row: join_values(
                (dig(t, "summary") for t in row.get("teams") or []), delimiter
            ),
        ),
        ColumnDescriptor("html_url", header="URL", extended=True),
    ]


def log_entry_columns() -> List[ColumnDescriptor]:
    """Built-in columns for incident log entries."""
    return [
        ColumnDescriptor("id", header="Log Entry ID"),
        ColumnDescriptor(
            "incident_id", header="Incident ID", get=lambda row: dig(row, "incident", "id")
        ),
        ColumnDescriptor("type", header="Log Entry Type"),
        ColumnDescriptor("created", get=lambda row: format_timestamp(row.get("created_at"))),
        ColumnDescriptor("summary"),
    ]


def register_incident_commands(cli: Any) -> None:
    """Register the 'incident' command group and its subcommands.

    Args:
        cli: Click CLI group to register commands on.
    """

    @cli.group()
    def incident() -> None:
        """List PagerDuty incidents and their log entries."""

    @incident.command(name="list")
    @click.option("--me", "-m", is_flag=True, help="Return only incidents assigned to me")
    @click.option(
        "--statuses",
        "-s",
        type=click.Choice(STATUS_CHOICES),
        multiple=True,
        default=["open"],
        show_default=True,
        help="Incident statuses to include. Repeat for multiple statuses.",
    )
    @click.option(
        "--assignees",
        "-e",
        multiple=True,
        help="Return only incidents assigned to this login email. Repeat for multiple.",
    )
    @click.option("--teams", "-t", multiple=True, help="Team names to include. Repeat for more.")
    @click.option(
        "--services", "-S", multiple=True, help="Service names to include. Repeat for more."
    )
    @click.option(
        "--urgencies",
        "-u",
        type=click.Choice(URGENCY_CHOICES),
        multiple=True,
        default=["high", "low"],
        show_default=True,
        help="Urgencies to include.",
    )
    @click.option("--since", help="Start of the date range, e.g. '3 days ago'")
    @click.option("--until", help="End of the date range, e.g. 'yesterday'")
    @click.option("--limit", type=click.IntRange(min=1), help="Maximum number of incidents")
    @listing_options(pipe_help="Print incident IDs only to stdout, for use with pipes.")
    def list_incidents(
        me: bool,
        statuses: Tuple[str, ...],
        assignees: Tuple[str, ...],
        teams: Tuple[str, ...],
        services: Tuple[str, ...],
        urgencies: Tuple[str, ...],
        since: Optional[str],
        until: Optional[str],
        limit: Optional[int],
        **kwargs: Any,
    ) -> None:
        """List PagerDuty incidents.

        Name-based filters (--assignees, --teams, --services) are looked up
        first and must each match at least one user, team or service.
        Piping the output of --pipe into 'incident log --pipe' shows the log
        entries of every listed incident.
        """
        options = pop_listing_options(kwargs)
        try:
            mode = validate_output_flags(options)

            client = PagerDutyClient()
            params = resolve_incident_params(
                client,
                IncidentFilters(
                    statuses=statuses,
                    me=me,
                    assignees=assignees,
                    teams=teams,
                    services=services,
                    urgencies=urgencies,
                    since=since,
                    until=until,
                ),
            )
            priorities = client.priorities_by_id() if mode is OutputMode.TABLE else {}
            incidents = client.fetch_with_progress(
                "incidents", params, activity="Getting incidents", limit=limit
            )
        except Exception as exc:  # noqa: BLE001
            handle_api_error(exc)
            return

        handle_empty(incidents, INCIDENTS_EMPTY)
        try:
            render_listing(
                incidents, incident_columns(priorities, options.delimiter), options, mode
            )
        except Exception as exc:  # noqa: BLE001
            handle_api_error(exc)

    @incident.command(name="log")
    @click.option(
        "--ids",
        "-i",
        multiple=True,
        help="Incident IDs to show log entries for. Repeat, or separate with commas.",
    )
    @click.option(
        "--pipe",
        "-p",
        "from_stdin",
        is_flag=True,
        help="Read incident IDs from stdin, for use with pipes.",
    )
    @click.option("--overview", "-O", is_flag=True, help="Get only `overview` log entries")
    @click.option("--limit", type=click.IntRange(min=1), help="Maximum number of log entries")
    @listing_options(pipe_help=None)
    def incident_log(
        ids: Tuple[str, ...],
        from_stdin: bool,
        overview: bool,
        limit: Optional[int],
        **kwargs: Any,
    ) -> None:
        """Show PagerDuty incident log entries."""
        options = pop_listing_options(kwargs)
        try:
            if ids and from_stdin:
                raise InvalidInputError("--ids and --pipe cannot be used together")
            if not ids and not from_stdin:
                raise InvalidInputError("You must specify at least one of: -i, -p")
            mode = validate_output_flags(options)
            if mode is OutputMode.TABLE and not options.table.sort:
                options.table.sort = "created"

            raw_ids = list(ids) if ids else [read_stdin_text()]
            incident_ids = resolve_ids(raw_ids, label="incident")

            client = PagerDutyClient()
            params: Dict[str, Any] = {"is_overview": overview}
            log_entries: List[Dict[str, Any]] = []
            for incident_id in incident_ids:
                remaining = None if limit is None else limit - len(log_entries)
                if remaining is not None and remaining <= 0:
                    break
                log_entries.extend(
                    client.fetch_with_progress(
                        f"incidents/{incident_id}/log_entries",
                        params,
                        activity=f"Getting log entries for incident {incident_id}",
                        limit=remaining,
                    )
                )
        except Exception as exc:  # noqa: BLE001
            handle_api_error(exc)
            return

        handle_empty(log_entries, LOG_ENTRIES_EMPTY)
        try:
            render_listing(log_entries, log_entry_columns(), options, mode)
        except Exception as exc:  # noqa: BLE001
            handle_api_error(exc)

