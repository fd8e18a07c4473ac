"""Lenient value parsing for rows delivered by downstream services."""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

# Leading numeric prefix, so "12.5 Bs" parses as 12.5 and "abc" as nothing.
_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def to_number(value: Any) -> float:
    """Parse ``value`` as a float; missing, malformed or non-finite input gives 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        match = _NUMERIC_PREFIX.match(str(value).strip())
        if match is None:
            return 0.0
        number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def to_optional_int(value: Any) -> int | None:
    """Parse an identifier; anything that is not a whole number gives None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number != int(number):
        return None
    return int(number)


def drop_nulls(data: Any) -> Any:
    """Remove null-valued keys so alias resolution falls through to the next name."""
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


def coalesce(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None
