import io
from typing import List

import pytest

from tswire.errors import UnsupportedFieldTypeError
from tswire.point import Point, value
from tswire.protocol import DEFAULT_WRITE_TYPE, LineProtocol
from tswire.writer import PointWriter


class RecordingSink(io.BytesIO):
    def __init__(self) -> None:
        super().__init__()
        self.chunks: List[bytes] = []

    def write(self, data: bytes) -> int:  # type: ignore[override]
        self.chunks.append(bytes(data))
        return super().write(data)


def test_write_points() -> None:
    sink = io.BytesIO()
    writer = PointWriter(sink)
    writer.write_points(Point("cpu", value(5.0), tags={"host": "server01"}))

    assert sink.getvalue() == b"cpu,host=server01 value=5\n"
    assert writer.written == 1
    assert writer.content_type == DEFAULT_WRITE_TYPE


def test_writes_in_chunks() -> None:
    sink = RecordingSink()
    writer = PointWriter(sink, chunk_size=2)
    writer.write(Point("cpu", value(i)) for i in range(5))

    assert sink.chunks == [
        b"cpu value=0i\ncpu value=1i\n",
        b"cpu value=2i\ncpu value=3i\n",
        b"cpu value=4i\n",
    ]
    assert writer.written == 5


def test_failure_keeps_complete_lines() -> None:
    sink = io.BytesIO()
    writer = PointWriter(sink, protocol=LineProtocol.V1("s"), chunk_size=10)

    with pytest.raises(UnsupportedFieldTypeError):
        writer.write_points(
            Point("cpu", value(1), time=2_000_000_000),
            Point("cpu", {"ok": 1, "bad": object()}),
            Point("cpu", value(3)),
        )

    assert sink.getvalue() == b"cpu value=1i 2\n"
    assert writer.written == 1


def test_invalid_chunk_size() -> None:
    with pytest.raises(ValueError):
        PointWriter(io.BytesIO(), chunk_size=0)


class FailingSink(io.BytesIO):
    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0

    def write(self, data: bytes) -> int:  # type: ignore[override]
        self.attempts += 1
        raise OSError("connection reset")


def test_failed_sink_write_is_not_repeated() -> None:
    sink = FailingSink()
    writer = PointWriter(sink, chunk_size=1)

    with pytest.raises(OSError):
        writer.write_points(Point("cpu", value(1)))

    assert sink.attempts == 1
    assert writer.written == 0

    # The lines of the failed write are gone; the next flush writes nothing.
    writer.flush()
    assert sink.attempts == 1
