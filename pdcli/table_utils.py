"""Table formatting utilities for listing commands."""

import csv
import io
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import click
from tabulate import tabulate

from .columns import ColumnDescriptor, Projection
from .utils import InvalidInputError


class TableOptionError(InvalidInputError):
    """A --columns/--sort/--filter value does not fit the table."""


@dataclass
class TableOptions:
    """Generic table flags shared by all listing commands."""

    columns: Optional[str] = None
    sort: Optional[str] = None
    filter: Optional[str] = None
    csv: bool = False
    extended: bool = False
    no_header: bool = False


def _find_column(columns: Sequence[ColumnDescriptor], name: str) -> Optional[ColumnDescriptor]:
    """Find a column by key or header (case-insensitive)."""
    for column in columns:
        if column.matches(name):
            return column
    return None


def _select_columns(
    columns: Sequence[ColumnDescriptor], options: TableOptions
) -> List[ColumnDescriptor]:
    """Apply --columns, or hide extended columns unless --extended is set."""
    if options.columns:
        selected: List[ColumnDescriptor] = []
        for name in options.columns.split(","):
            if not name.strip():
                continue
            column = _find_column(columns, name)
            if column is None:
                raise TableOptionError(f"Unknown column '{name.strip()}' in --columns")
            if column not in selected:
                selected.append(column)
        return selected
    return Projection(columns).visible(options.extended)


def _filter_rows(
    rows: List[Dict[str, str]], columns: Sequence[ColumnDescriptor], expression: str
) -> List[Dict[str, str]]:
    """Keep rows whose displayed value matches ``column=regex``.

    A leading ``-`` on the column name keeps the rows that do not match.
    """
    header, _, pattern = expression.partition("=")
    negate = header.startswith("-")
    if negate:
        header = header[1:]
    column = _find_column(columns, header)
    if column is None or not pattern:
        raise TableOptionError(f"Filter flag has an invalid value: {expression}")
    try:
        regex = re.compile(pattern)
    except re.error as exc:
        raise TableOptionError(f"Filter flag has an invalid regular expression: {exc}") from exc
    kept = []
    for row in rows:
        matched = regex.search(click.unstyle(row[column.key])) is not None
        if matched != negate:
            kept.append(row)
    return kept


def _sort_rows(
    rows: List[Dict[str, str]], columns: Sequence[ColumnDescriptor], expression: str
) -> List[Dict[str, str]]:
    """Sort rows by one or more columns; ``-name`` sorts descending."""
    sorters = [s.strip() for s in expression.split(",") if s.strip()]
    # Stable sorts applied from the least significant key
    for sorter in reversed(sorters):
        descending = sorter.startswith("-")
        name = sorter[1:] if descending else sorter
        column = _find_column(columns, name)
        if column is None:
            raise TableOptionError(f"Unknown column '{name}' in --sort")
        key = column.key
        rows = sorted(rows, key=lambda row: click.unstyle(row[key]), reverse=descending)
    return rows


def _format_csv(
    columns: Sequence[ColumnDescriptor], rows: List[Dict[str, str]], header: bool
) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    if header:
        writer.writerow([c.title for c in columns])
    for row in rows:
        writer.writerow([click.unstyle(row[c.key]) for c in columns])
    return buffer.getvalue().rstrip("\n")


def _format_table(
    columns: Sequence[ColumnDescriptor], rows: List[Dict[str, str]], header: bool
) -> str:
    data = [[row[c.key] for c in columns] for row in rows]
    if header:
        text = tabulate(
            data,
            headers=[click.style(c.title, bold=True) for c in columns],
            tablefmt="simple",
            disable_numparse=True,
        )
    else:
        text = tabulate(data, tablefmt="plain", disable_numparse=True)
    return "\n".join(line.rstrip() for line in text.splitlines())


def format_table(
    records: Sequence[Dict[str, Any]],
    columns: Sequence[ColumnDescriptor],
    options: Optional[TableOptions] = None,
) -> str:
    """Render records as a table (or CSV) according to the table options.

    Every row is computed before anything is returned, so a failing
    accessor or option never leaves a partial table behind.

    Args:
        records: Records to render, in upstream order
        columns: All columns of the projection, in display order
        options: Column selection, sorting, filtering and format flags

    Returns:
        The rendered text without a trailing newline
    """
    options = options or TableOptions()
    rows = [{c.key: c.value(record) for c in columns} for record in records]

    if options.filter:
        rows = _filter_rows(rows, columns, options.filter)
    if options.sort:
        rows = _sort_rows(rows, columns, options.sort)
    shown = _select_columns(columns, options)

    if options.csv:
        return _format_csv(shown, rows, header=not options.no_header)
    return _format_table(shown, rows, header=not options.no_header)


def print_table(
    records: Sequence[Dict[str, Any]],
    columns: Sequence[ColumnDescriptor],
    options: Optional[TableOptions] = None,
) -> None:
    """Render records and print the result."""
    text = format_table(records, columns, options)
    if text:
        click.echo(text)
