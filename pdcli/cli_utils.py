"""Common option decorators and helpers for listing commands."""

from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

import click

from .listing import ListingOptions
from .table_utils import TableOptions

F = TypeVar("F", bound=Callable[..., Any])

LISTING_OPTION_NAMES = (
    "keys",
    "json_output",
    "pipe",
    "delimiter",
    "columns",
    "sort",
    "filter_",
    "csv",
    "extended",
    "no_header",
)


def table_options(func: F) -> F:
    """Add the generic table flags (--columns, --sort, --filter, ...)."""
    decorators = [
        click.option("--columns", help="Only show provided columns (comma-separated)"),
        click.option("--sort", help="Property to sort by (prepend '-' for descending)"),
        click.option(
            "--filter",
            "filter_",
            help="Filter property by regular expression, e.g. --filter=status=trig",
        ),
        click.option("--csv", is_flag=True, help="Output in CSV format"),
        click.option("--extended", "-x", is_flag=True, help="Show extra columns"),
        click.option("--no-header", is_flag=True, help="Hide table header from output"),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def listing_options(pipe_help: Optional[str] = None) -> Callable[[F], F]:
    """Add --keys/--json/--pipe/--delimiter plus the table flags.

    Args:
        pipe_help: Help text for --pipe; commands whose --pipe has a
            different meaning declare their own option and pass None
    """

    def wrapper(func: F) -> F:
        func = table_options(func)
        func = click.option(
            "--delimiter",
            "-d",
            default="\n",
            show_default="newline",
            help="Delimiter for fields that have more than one value",
        )(func)
        if pipe_help is not None:
            func = click.option("--pipe", "-p", is_flag=True, help=pipe_help)(func)
        func = click.option(
            "--json", "-j", "json_output", is_flag=True, help="Output full details as JSON"
        )(func)
        func = click.option(
            "--keys",
            "-k",
            multiple=True,
            help=(
                "Additional fields to display, as JSONPath expressions "
                "(e.g. '$.assignments[*].assignee.summary'). Repeat for more fields."
            ),
        )(func)
        return func

    return wrapper


def pop_listing_options(kwargs: Dict[str, Any]) -> ListingOptions:
    """Remove the shared listing flags from ``kwargs`` and build ListingOptions.

    Args:
        kwargs: Keyword arguments received by the click command

    Returns:
        ListingOptions for the output renderer
    """
    values = {name: kwargs.pop(name, None) for name in LISTING_OPTION_NAMES}
    keys: Tuple[str, ...] = tuple(values["keys"] or ())
    return ListingOptions(
        keys=keys,
        json=bool(values["json_output"]),
        pipe=bool(values["pipe"]),
        delimiter=values["delimiter"] if values["delimiter"] is not None else "\n",
        table=TableOptions(
            columns=values["columns"],
            sort=values["sort"],
            filter=values["filter_"],
            csv=bool(values["csv"]),
            extended=bool(values["extended"]),
            no_header=bool(values["no_header"]),
        ),
    )


def read_stdin_text() -> str:
    """Read everything piped to stdin."""
    stream = click.get_text_stream("stdin")
    return stream.read()
