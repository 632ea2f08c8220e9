from __future__ import annotations

from enum import Enum
from typing import Mapping, Union

from tswire.errors import InvalidPrecisionError


class Precision(Enum):
    """
    Unit used for timestamps on the wire. The value is the token the server
    expects in the ``precision`` and ``epoch`` query parameters.
    """

    NANOSECOND = "ns"
    MICROSECOND = "u"
    MILLISECOND = "ms"
    SECOND = "s"
    MINUTE = "m"
    HOUR = "h"

    def __str__(self) -> str:
        return self.value

    @property
    def factor(self) -> int:
        """Number of nanoseconds in one unit of this precision."""
        return _FACTORS[self]

    @classmethod
    def parse(cls, value: Union[str, Precision, None]) -> Precision:
        if value is None:
            return cls.NANOSECOND
        if isinstance(value, Precision):
            return value
        try:
            return _ALIASES[value]
        except KeyError:
            raise InvalidPrecisionError(value, precision=value) from None


_FACTORS: Mapping[Precision, int] = {
    Precision.NANOSECOND: 1,
    Precision.MICROSECOND: 1_000,
    Precision.MILLISECOND: 1_000_000,
    Precision.SECOND: 1_000_000_000,
    Precision.MINUTE: 60 * 1_000_000_000,
    Precision.HOUR: 3600 * 1_000_000_000,
}

_ALIASES: Mapping[str, Precision] = {
    **{precision.value: precision for precision in Precision},
    "n": Precision.NANOSECOND,
    "us": Precision.MICROSECOND,
    "µs": Precision.MICROSECOND,
}


def truncate(timestamp: int, precision: Precision) -> int:
    """
    Convert a nanosecond timestamp to a count of ``precision`` units,
    truncating towards zero.
    """
    factor = precision.factor
    if factor == 1:
        return timestamp
    units = abs(timestamp) // factor
    return -units if timestamp < 0 else units
