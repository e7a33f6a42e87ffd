"""Run-time construction of output columns for listing commands.

A listing starts from a static, per-resource schema of column descriptors,
appends one column per ``--keys`` expression and finally applies the
visibility rules of the selected output mode. Descriptors are declarative
(key, header, extended flag, accessor) so the table printer never needs to
know where a value comes from.
"""

import dataclasses
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .expression import compile_expression, format_field
from .utils import CliError

Record = Dict[str, Any]
Accessor = Callable[[Record], Any]


class OutputMode(Enum):
    """Mutually exclusive output modes of a listing command."""

    JSON = "json"
    PIPE = "pipe"
    TABLE = "table"


class LookupMissError(CliError):
    """A record references an entity missing from a pre-fetched lookup table."""


def dig(record: Any, *path: Any, default: Any = "") -> Any:
    """Safely walk nested mappings and lists.

    Args:
        record: Record to read from
        path: Keys (for mappings) or indexes (for lists) to follow
        default: Value returned when any step is missing

    Returns:
        The nested value, or ``default``
    """
    value = record
    for step in path:
        if isinstance(value, Mapping):
            value = value.get(step)
        elif isinstance(value, list) and isinstance(step, int) and -len(value) <= step < len(value):
            value = value[step]
        else:
            return default
        if value is None:
            return default
    return value


@dataclass
class ColumnDescriptor:
    """One output column."""

    key: str
    header: Optional[str] = None
    extended: bool = False
    get: Optional[Accessor] = None

    @property
    def title(self) -> str:
        """Header text shown in the table."""
        if self.header is not None:
            return self.header
        return self.key.replace("_", " ").capitalize()

    def value(self, record: Record) -> str:
        """Return the display value of this column for ``record``."""
        if self.get is not None:
            raw = self.get(record)
        else:
            raw = dig(record, self.key)
        return format_field(raw)

    def matches(self, name: str) -> bool:
        """Whether ``name`` refers to this column by key or header."""
        lowered = name.strip().lower()
        return lowered in (self.key.lower(), self.title.lower())


class Projection:
    """Ordered mapping of column key to descriptor."""

    def __init__(self, columns: Iterable[ColumnDescriptor] = ()) -> None:
        self._columns: "OrderedDict[str, ColumnDescriptor]" = OrderedDict()
        for column in columns:
            self.add(column)

    def add(self, column: ColumnDescriptor) -> None:
        """Add a column; a column with an existing key replaces it in place."""
        self._columns[column.key] = column

    @property
    def columns(self) -> List[ColumnDescriptor]:
        """All columns in display order."""
        return list(self._columns.values())

    @property
    def keys(self) -> List[str]:
        return list(self._columns.keys())

    def visible(self, extended: bool = False) -> List[ColumnDescriptor]:
        """Columns shown by default, or all columns in extended mode."""
        return [c for c in self._columns.values() if extended or not c.extended]

    def mask_all_but(self, primary_key: str) -> None:
        """Mark every column except ``primary_key`` as extended.

        Only visibility changes; order and membership are untouched.
        """
        for key, column in self._columns.items():
            if key != primary_key:
                column.extended = True


def expression_column(expression: str, delimiter: str = "\n") -> ColumnDescriptor:
    """Build a column whose value is extracted with a JSONPath expression.

    The expression is compiled immediately so that a malformed one fails
    before any row is rendered.
    """
    compiled = compile_expression(expression)
    return ColumnDescriptor(
        key=expression,
        header=expression,
        get=lambda record: compiled.render(record, delimiter),
    )


def build_projection(
    schema: Sequence[ColumnDescriptor],
    keys: Sequence[str] = (),
    delimiter: str = "\n",
    mode: OutputMode = OutputMode.TABLE,
    primary_key: str = "id",
) -> Projection:
    """Build the columns for one listing.

    Args:
        schema: Built-in columns of the resource, in display order
        keys: JSONPath expressions for additional columns
        delimiter: Separator for multi-valued expression results
        mode: Active output mode
        primary_key: Column kept visible in pipe mode

    Returns:
        A fresh projection; ``schema`` itself is left untouched

    Raises:
        ExpressionError: If any expression is malformed
    """
    projection = Projection(dataclasses.replace(column) for column in schema)
    for key in keys:
        projection.add(expression_column(key, delimiter))
    if mode is OutputMode.PIPE:
        projection.mask_all_but(primary_key)
    return projection


def require_references(
    records: Iterable[Record],
    field: str,
    lookup: Mapping[str, Any],
    label: str,
) -> None:
    """Check that every reference in ``field`` is present in ``lookup``.

    Records without a reference are skipped.

    Raises:
        LookupMissError: If a referenced ID is missing from ``lookup``
    """
    for record in records:
        ref = dig(record, field, default=None)
        if ref and ref not in lookup:
            raise LookupMissError(
                f"{label} '{ref}' referenced by {record.get('id', 'a record')} was not found"
            )
