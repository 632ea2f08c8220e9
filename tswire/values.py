from __future__ import annotations

import calendar
import math
import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from tswire.precision import Precision

TIME_COLUMN = "time"

# RFC3339 with up to nanosecond precision, e.g. 2010-01-01T00:00:00.123456789Z
RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})T(?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<offset>Z|[+-]\d{2}:\d{2})$"
)


class ValueKind(Enum):
    FLOAT = "float"
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"
    TIME_STRING = "time_string"


def classify(value: Any, time_column: bool = False) -> Optional[ValueKind]:
    """
    Returns the kind of a scalar value, or None if the value is not one the
    protocol can carry. Strings found in the time column are reported as
    ``TIME_STRING`` when they parse as RFC3339.
    """
    # bool must be checked first since it is a subclass of int
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    elif isinstance(value, int):
        return ValueKind.INTEGER
    elif isinstance(value, float):
        return ValueKind.FLOAT
    elif isinstance(value, str):
        if time_column and parse_time(value) is not None:
            return ValueKind.TIME_STRING
        return ValueKind.STRING
    elif value is None:
        return ValueKind.NULL
    return None


def parse_time(value: str) -> Optional[int]:
    """
    Parses an RFC3339 timestamp with optional fractional seconds into
    nanoseconds since the epoch. Returns None if the string is not a valid
    timestamp.
    """
    match = RFC3339_RE.match(value)
    if match is None:
        return None

    try:
        parsed = datetime.strptime(
            f"{match['date']}T{match['time']}", "%Y-%m-%dT%H:%M:%S"
        )
    except ValueError:
        return None

    seconds = calendar.timegm(parsed.timetuple())
    offset = match["offset"]
    if offset != "Z":
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if hours > 23 or minutes > 59:
            return None
        delta = hours * 3600 + minutes * 60
        seconds = seconds - delta if offset[0] == "+" else seconds + delta

    fraction = match["fraction"] or ""
    nanos = int(fraction.ljust(9, "0")) if fraction else 0
    return seconds * 1_000_000_000 + nanos


def time_from_value(value: Any, epoch: Optional[Precision] = None) -> Optional[int]:
    """
    Normalizes a time column value into nanoseconds since the epoch.

    Strings are parsed as RFC3339. Numbers are counts of ``epoch`` units
    (nanoseconds by default). Anything else, including unparsable strings,
    yields None.
    """
    kind = classify(value)
    if kind is ValueKind.STRING:
        return parse_time(value)

    factor = epoch.factor if epoch is not None else 1
    if kind is ValueKind.INTEGER:
        return int(value) * factor
    elif kind is ValueKind.FLOAT:
        if not math.isfinite(value):
            return None
        return int(value * factor)
    return None
