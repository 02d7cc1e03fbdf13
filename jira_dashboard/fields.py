"""
Coercion helpers for untyped sheet rows.

Sheet cells arrive as strings (or are missing altogether); these helpers turn
them into numbers and datetimes without raising.
"""

import math
from datetime import datetime
from typing import Any, Optional

DATE_FORMATS = [
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%d %b %Y",
    "%b %d, %Y",
]


def field_text(row: dict, key: str) -> str:
    """Cell value as a stripped string, empty when missing."""
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip()


def parse_story_points(value: Any) -> Optional[float]:
    """Parse a story point cell. Returns None for blank or non-numeric values."""
    if value is None or isinstance(value, bool):
        return None

    try:
        points = float(str(value).strip())
    except ValueError:
        return None

    if not math.isfinite(points):
        return None
    return points


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 or common spreadsheet date. Returns None if unparseable."""
    if isinstance(value, datetime):
        return value
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return None
