"""Value formatters shared by the resource column schemas."""

from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import click

from .columns import dig

ORANGE = (255, 165, 0)

STATUS_STYLES: Dict[str, Dict[str, Any]] = {
    "triggered": {"fg": "red", "bold": True},
    "acknowledged": {"fg": ORANGE, "bold": True},
    "resolved": {"fg": "green", "bold": True},
}


def format_timestamp(timestamp: Any) -> str:
    """Format an API timestamp in local time for table display."""
    if not timestamp:
        return ""

    try:
        if isinstance(timestamp, str):
            # Handle ISO format timestamps
            dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        elif isinstance(timestamp, (int, float)):
            # Handle Unix timestamps
            dt = datetime.fromtimestamp(timestamp)
        else:
            return ""
        if dt.tzinfo is not None:
            dt = dt.astimezone()
        return dt.strftime("%Y-%m-%d %H:%M:%S")

    except (ValueError, TypeError, OverflowError, OSError):
        return ""


def hex_to_rgb(color: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """Convert ``#a8171c`` or ``a8171c`` to an RGB tuple; None if malformed."""
    if not color:
        return None
    value = color.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) != 6:
        return None
    try:
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))
    except ValueError:
        return None


def style_status(status: Any) -> str:
    """Color an incident status."""
    if not status:
        return ""
    style = STATUS_STYLES.get(str(status))
    if style is None:
        return str(status)
    return click.style(str(status), **style)


def style_urgency(urgency: Any) -> str:
    """Embolden high urgency."""
    if not urgency:
        return ""
    if urgency == "high":
        return click.style(str(urgency), bold=True)
    return str(urgency)


def style_priority(priority: Any, palette: Mapping[str, Mapping[str, Any]]) -> str:
    """Render a priority summary in the account's color for that priority.

    Args:
        priority: The record's priority reference (``{"id", "summary"}``)
        palette: Priorities keyed by ID, each with a ``color``
    """
    summary = dig(priority, "summary")
    priority_id = dig(priority, "id")
    if not summary or not priority_id:
        return ""
    rgb = hex_to_rgb(dig(palette, priority_id, "color", default=None))
    if rgb is None:
        return str(summary)
    return click.style(str(summary), fg=rgb, bold=True)


def join_values(values: Iterable[Any], delimiter: str = "\n") -> str:
    """Join non-empty values with the multi-value delimiter."""
    return delimiter.join(str(v) for v in values if v not in (None, ""))
