# -*- coding: utf-8 -*-
"""
Cell value parsing helpers shared by the analysis engines.

CSV cells arrive as strings (or occasionally numbers). These helpers give
every engine the same answer to "is this blank", "what number is this"
and "what date is this", without raising on bad input.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

# Leading numeric prefix, e.g. "12.5k" -> 12.5, "abc" -> no match.
_NUMBER_PREFIX = re.compile(
    r"^[+-]?(?:Infinity|\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
)

_DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S %Z",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M %Z",
    "%Y-%m-%d %Z",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%d/%m/%Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d, %Y %I:%M %p",
    "%B %d, %Y %I:%M %p",
    "%b %d, %Y %H:%M",
    "%B %d, %Y %H:%M",
    "%b %d %Y",
    "%B %d %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%d %b %Y %H:%M",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%a %b %d %Y",
    "%a %b %d %Y %H:%M:%S",
)


def is_blank(value: Any) -> bool:
    """True for missing cells: None or a whitespace-only string."""
    if value is None:
        return True
    return str(value).strip() == ""


def parse_number(value: Any, strip_commas: bool = True) -> Optional[float]:
    """Parse the leading numeric prefix of a cell.

    Thousands separators are removed first, so ``"1,234"`` is 1234.0.
    Trailing text is ignored (``"5%"`` is 5.0).

    Args:
        value: Raw cell value.
        strip_commas: Remove ``,`` before parsing.

    Returns:
        The parsed float, or None when the cell has no numeric prefix.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return None if math.isnan(number) else number

    text = str(value)
    if strip_commas:
        text = text.replace(",", "")
    match = _NUMBER_PREFIX.match(text.strip())
    if match is None:
        return None
    token = match.group(0)
    if token.lstrip("+-") == "Infinity":
        return -math.inf if token.startswith("-") else math.inf
    return float(token)


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a cell into a timezone-aware UTC datetime.

    Tries ISO-8601 first, then a set of common export formats. Naive
    results are assumed to be UTC.

    Args:
        value: Raw cell value (string, datetime or epoch seconds).

    Returns:
        Parsed datetime, or None if the value is not a recognisable date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OSError, OverflowError, ValueError):
            return None

    s = str(value).strip()
    if not s:
        return None
    try:
        iso_s = s[:-1] + "+00:00" if s.endswith("Z") else s
        dt = datetime.fromisoformat(iso_s)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            dt = datetime.strptime(s, fmt)
        except ValueError:
            continue
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    return None


__all__ = [
    "is_blank",
    "parse_number",
    "parse_date",
]
