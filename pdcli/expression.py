"""JSONPath extraction for user-defined output columns.

Expressions given with ``--keys`` are compiled once, when the output
columns are built, and then evaluated against every record. A malformed
expression is a fatal input error; evaluating a valid expression against a
record never fails and yields an empty string when nothing matches.
"""

import json
from typing import Any, List

from jsonpath_ng.ext import parse as jsonpath_parse

from .utils import InvalidInputError


class ExpressionError(InvalidInputError):
    """A --keys expression could not be parsed."""


def format_field(value: Any, delimiter: str = "\n") -> str:
    """Convert an extracted value into a single display string.

    Args:
        value: A scalar, mapping or (nested) list of extracted values
        delimiter: Separator placed between multiple values

    Returns:
        Display string; empty for None or an empty list
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        parts = [format_field(item, delimiter) for item in value]
        return delimiter.join(parts)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


class PathExpression:
    """A compiled JSONPath expression."""

    def __init__(self, expression: str) -> None:
        """Compile the expression.

        Args:
            expression: JSONPath text, e.g. ``$.assignments[*].assignee.summary``

        Raises:
            ExpressionError: If the expression is empty or malformed
        """
        self.expression = expression
        if not expression or not expression.strip():
            raise ExpressionError("Invalid key expression: expression is empty")
        try:
            self._compiled = jsonpath_parse(expression)
        except Exception as exc:  # noqa: BLE001
            raise ExpressionError(f"Invalid key expression '{expression}': {exc}") from exc

    def query(self, record: Any) -> List[Any]:
        """Return every value matched in ``record``."""
        try:
            return [match.value for match in self._compiled.find(record)]
        except (AttributeError, IndexError, KeyError, TypeError, ValueError):
            # Filters comparing mismatched types match nothing
            return []

    def render(self, record: Any, delimiter: str = "\n") -> str:
        """Return all matches of ``record`` joined into one display string."""
        return format_field(self.query(record), delimiter)


def compile_expression(expression: str) -> PathExpression:
    """Compile a JSONPath expression, raising ExpressionError if malformed."""
    return PathExpression(expression)


def extract(record: Any, expression: str, delimiter: str = "\n") -> str:
    """Evaluate ``expression`` against ``record`` and join the matches.

    Args:
        record: Record to read from; it is not modified
        expression: JSONPath expression
        delimiter: Separator for multiple matches

    Returns:
        Joined matches, or an empty string when nothing matches
    """
    return compile_expression(expression).render(record, delimiter)
