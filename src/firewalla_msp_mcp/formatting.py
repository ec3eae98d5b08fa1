"""Small formatting helpers shared by the XML envelope and the Markdown renderers."""

import math
from datetime import datetime, timezone
from typing import Any

BYTE_UNITS = ["B", "KB", "MB", "GB", "TB"]
BYTE_BASE = 1024

# Order matters: "&" must be replaced first so later entities are not re-escaped
XML_ESCAPES = [
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
]


def format_bytes(num_bytes: Any) -> str:
    """Format a byte count as a human readable string such as ``1.5 KB``.

    Absent, zero, negative or non-numeric input renders as ``0 B``.
    """
    if isinstance(num_bytes, bool):
        return "0 B"
    try:
        value = float(num_bytes)
    except (TypeError, ValueError):
        return "0 B"
    if not math.isfinite(value) or value <= 0:
        return "0 B"

    exponent = max(0, min(int(math.log(value, BYTE_BASE)), len(BYTE_UNITS) - 1))
    scaled = round(value / BYTE_BASE ** exponent, 2)
    # Rounding can land exactly on the base (1023.999 KB -> 1024 KB)
    if scaled >= BYTE_BASE and exponent < len(BYTE_UNITS) - 1:
        exponent += 1
        scaled = round(value / BYTE_BASE ** exponent, 2)
    elif scaled < 1 and exponent > 0:
        exponent -= 1
        scaled = round(value / BYTE_BASE ** exponent, 2)

    text = f"{scaled:.2f}".rstrip("0").rstrip(".")
    return f"{text} {BYTE_UNITS[exponent]}"


def escape_xml(value: Any) -> str:
    """Escape the five reserved XML characters."""
    text = value if isinstance(value, str) else str(value)
    for char, entity in XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def utc_timestamp() -> str:
    """Current time as ISO-8601 with millisecond precision, e.g. ``2024-05-01T12:00:00.000Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_unix_time(ts: Any) -> str:
    """Render Unix seconds as a UTC date string, ``N/A`` when absent or invalid."""
    if ts is None or isinstance(ts, bool):
        return "N/A"
    try:
        moment = datetime.fromtimestamp(float(ts), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return "N/A"
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def plural(count: int, singular: str, plural_form: str | None = None) -> str:
    """``1 box`` / ``3 boxes``."""
    if count == 1:
        return f"{count} {singular}"
    return f"{count} {plural_form or singular + 's'}"


def percent(part: float, whole: float) -> str:
    if not whole:
        return "0%"
    return f"{part / whole * 100:.1f}%"


def md_cell(value: Any) -> str:
    """Make a value safe to place inside a Markdown table cell."""
    text = value if isinstance(value, str) else str(value)
    return text.replace("|", "\\|").replace("\r", " ").replace("\n", " ")
