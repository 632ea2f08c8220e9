from typing import Callable, List, Optional

import pytest

from tswire.cursor import Cursor, ResultSet, Row, Series
from tswire.errors import ResultError, UnexpectedEndOfStream
from tswire.iterate import STOP, for_each_result, for_each_row, for_each_series

MakeCursor = Callable[[str], Cursor]

BODY = (
    '{"results":['
    '{"series":[{"name":"cpu","columns":["v"],"values":[[1],[2],[3]]},'
    '{"name":"mem","columns":["v"],"values":[[4]]}]},'
    '{"series":[{"name":"disk","columns":["v"],"values":[[5]]}]}'
    "]}"
)


def test_visits_everything(make_cursor: MakeCursor) -> None:
    seen: List[object] = []

    def on_row(row: Row) -> None:
        seen.append(row.value(0))

    def on_series(series: Series) -> None:
        seen.append(series.name)
        for_each_row(series, on_row)

    def on_result(result: ResultSet) -> None:
        for_each_series(result, on_series)

    for_each_result(make_cursor(BODY), on_result)
    assert seen == ["cpu", 1, 2, 3, "mem", 4, "disk", 5]


def test_stop_is_not_an_error(make_cursor: MakeCursor) -> None:
    cursor = make_cursor(BODY)
    result = cursor.next_result_set()
    series = result.next_series()

    seen: List[object] = []

    def on_row(row: Row) -> Optional[object]:
        seen.append(row.value(0))
        return STOP if row.value(0) == 2 else None

    for_each_row(series, on_row)
    assert seen == [1, 2]

    names: List[str] = []

    def on_series(series: Series) -> object:
        names.append(series.name)
        return STOP

    for_each_series(result, on_series)
    assert names == ["mem"]

    results: List[ResultSet] = []

    def on_result(result: ResultSet) -> object:
        results.append(result)
        return STOP

    for_each_result(cursor, on_result)
    assert len(results) == 1


def test_callback_errors_propagate(make_cursor: MakeCursor) -> None:
    def on_result(result: ResultSet) -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        for_each_result(make_cursor(BODY), on_result)


def test_read_errors_propagate(make_cursor: MakeCursor) -> None:
    with pytest.raises(ResultError):
        for_each_result(make_cursor('{"results":[{"error":"failed"}]}'), print)

    cursor = make_cursor(
        '{"results":[{"series":[{"name":"cpu","columns":["v"],'
        '"values":[[1]],"partial":true}],"partial":true}]}'
    )
    series = cursor.next_result_set().next_series()
    with pytest.raises(UnexpectedEndOfStream):
        for_each_row(series, lambda row: None)
