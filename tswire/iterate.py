from __future__ import annotations

from typing import Any, Callable, Optional

from tswire.cursor import Cursor, ResultSet, Row, Series
from tswire.errors import EndOfStream


class _Stop:
    def __repr__(self) -> str:
        return "STOP"


# Returned by a callback to end iteration early. Iteration then finishes
# normally instead of being reported as a failure.
STOP: Any = _Stop()


def for_each_result(cursor: Cursor, fn: Callable[[ResultSet], Optional[Any]]) -> None:
    """
    Calls ``fn`` with every result set of the cursor. Errors raised while
    reading or by ``fn`` propagate to the caller.
    """
    while True:
        try:
            result = cursor.next_result_set()
        except EndOfStream:
            return

        if fn(result) is STOP:
            return


def for_each_series(result: ResultSet, fn: Callable[[Series], Optional[Any]]) -> None:
    while True:
        try:
            series = result.next_series()
        except EndOfStream:
            return

        if fn(series) is STOP:
            return


def for_each_row(series: Series, fn: Callable[[Row], Optional[Any]]) -> None:
    while True:
        try:
            row = series.next_row()
        except EndOfStream:
            return

        if fn(row) is STOP:
            return
