"""Rendering of listing results: JSON dump, pipe mode or table.

The output mode is decided from the flags before any network call so that
conflicting flags are rejected early. After fetching, an empty collection is
reported according to the resource's policy; otherwise the records are
printed in the selected mode.
"""

import dataclasses
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import click

from .columns import ColumnDescriptor, OutputMode, build_projection
from .table_utils import TableOptions, print_table
from .utils import ExitCodes, InvalidInputError, print_json_and_exit


@dataclass
class ListingOptions:
    """Output-related flags of a listing command."""

    keys: Sequence[str] = ()
    json: bool = False
    pipe: bool = False
    delimiter: str = "\n"
    table: TableOptions = field(default_factory=TableOptions)


@dataclass
class EmptyResultPolicy:
    """What a listing reports, and how it exits, when nothing was found."""

    message: str
    exit_code: int = ExitCodes.SUCCESS


def _table_flags_in_use(table: TableOptions, names: Sequence[str]) -> List[str]:
    return [f"--{name.replace('_', '-')}" for name in names if getattr(table, name)]


def validate_output_flags(options: ListingOptions) -> OutputMode:
    """Check flag exclusivity and return the single active output mode.

    Raises:
        InvalidInputError: If mutually exclusive flags are combined
    """
    if options.json:
        conflicts = _table_flags_in_use(
            options.table, ["columns", "filter", "sort", "csv", "extended"]
        )
        if options.pipe:
            conflicts.insert(0, "--pipe")
        if conflicts:
            raise InvalidInputError(f"--json cannot be used with {', '.join(conflicts)}")
        return OutputMode.JSON
    if options.pipe:
        conflicts = _table_flags_in_use(options.table, ["columns", "sort", "csv", "extended"])
        if conflicts:
            raise InvalidInputError(f"--pipe cannot be used with {', '.join(conflicts)}")
        return OutputMode.PIPE
    return OutputMode.TABLE


def handle_empty(records: Sequence[Dict[str, Any]], policy: EmptyResultPolicy) -> None:
    """Report an empty result and exit according to ``policy``."""
    if records:
        return
    if policy.exit_code == ExitCodes.SUCCESS:
        click.echo(policy.message, err=True)
    else:
        click.echo(f"✗ {policy.message}", err=True)
    sys.exit(policy.exit_code)


def render_listing(
    records: List[Dict[str, Any]],
    schema: Sequence[ColumnDescriptor],
    options: ListingOptions,
    mode: OutputMode,
    primary_key: str = "id",
) -> None:
    """Print records in the selected output mode.

    Args:
        records: Fetched records
        schema: Built-in columns for the resource
        options: Output flags
        mode: Mode returned by validate_output_flags
        primary_key: Column printed in pipe mode
    """
    if mode is OutputMode.JSON:
        print_json_and_exit(records)
        return

    projection = build_projection(schema, options.keys, options.delimiter, mode, primary_key)
    table_options = options.table
    if mode is OutputMode.PIPE:
        table_options = dataclasses.replace(table_options, no_header=True)
    print_table(records, projection.columns, table_options)
