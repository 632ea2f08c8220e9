from typing import Any

import pytest

from tswire.errors import (
    InvalidFieldValueError,
    NoFieldsError,
    UnsupportedFieldTypeError,
)
from tswire.point import Point, value
from tswire.precision import Precision
from tswire.protocol import (
    DEFAULT_WRITE_PROTOCOL,
    DEFAULT_WRITE_TYPE,
    LineProtocol,
    encode,
    encode_batch,
    escape_measurement,
    escape_string,
    escape_tag,
    format_value,
)


def test_line_protocol_v1() -> None:
    protocol = LineProtocol.V1()
    pt = Point(
        "cpu",
        value(2.0),
        tags=[("host", "server01"), ("region", "uswest")],
    )
    assert protocol.encode(pt) == b"cpu,host=server01,region=uswest value=2\n"


def test_content_type() -> None:
    assert DEFAULT_WRITE_TYPE == "application/x-influxdb-line-protocol-v1"
    assert DEFAULT_WRITE_PROTOCOL.content_type == DEFAULT_WRITE_TYPE


@pytest.mark.parametrize(
    "field_value,expected",
    [
        pytest.param(2.0, "2", id="whole_float"),
        pytest.param(0.1234567, "0.123457", id="six_significant_digits"),
        pytest.param(1e21, "1e+21", id="exponent"),
        pytest.param(5, "5i", id="integer"),
        pytest.param(-3, "-3i", id="negative_integer"),
        pytest.param(True, "true", id="true"),
        pytest.param(False, "false", id="false"),
        pytest.param('say "hi" \\o/', '"say \\"hi\\" \\\\o/"', id="string"),
    ],
)
def test_format_value(field_value: Any, expected: str) -> None:
    assert format_value(field_value) == expected


def test_escaping() -> None:
    assert escape_measurement("cpu load,total") == r"cpu\ load\,total"
    assert escape_tag("a=b, c") == r"a\=b\,\ c"
    assert escape_string('\\"') == '\\\\\\"'


def test_escapes_every_part() -> None:
    pt = Point(
        "disk usage",
        {"free space": 'a "b"'},
        tags=[("mount point", "/var,/tmp"), ("k=v", "x")],
    )
    assert encode(pt) == (
        b"disk\\ usage,mount\\ point=/var\\,/tmp,k\\=v=x "
        b'free\\ space="a \\"b\\""\n'
    )


def test_field_keys_escape_equals() -> None:
    assert encode(Point("cpu", {"a=b": 1, "c,d e": 2})) == (
        b"cpu a\\=b=1i,c\\,d\\ e=2i\n"
    )


def test_field_order_is_preserved() -> None:
    pt = Point("m", {"b": 1, "a": 2.5, "c": "x", "d": False})
    assert encode(pt) == b'm b=1i,a=2.5,c="x",d=false\n'


@pytest.mark.parametrize(
    "precision,expected",
    [
        pytest.param(None, b"cpu value=1i 1262304000123456789\n", id="default"),
        pytest.param(Precision.MICROSECOND, b"cpu value=1i 1262304000123456\n", id="u"),
        pytest.param("ms", b"cpu value=1i 1262304000123\n", id="ms"),
        pytest.param(Precision.SECOND, b"cpu value=1i 1262304000\n", id="s"),
        pytest.param(Precision.MINUTE, b"cpu value=1i 21038400\n", id="m"),
        pytest.param(Precision.HOUR, b"cpu value=1i 350640\n", id="h"),
    ],
)
def test_timestamp_precision(precision: Any, expected: bytes) -> None:
    pt = Point("cpu", value(1), time=1262304000123456789)
    assert encode(pt, precision) == expected


def test_integral_float_timestamp() -> None:
    pt = Point("cpu", value(1), time=1.5e18)
    assert pt.time == 1_500_000_000_000_000_000
    assert encode(pt, "s") == b"cpu value=1i 1500000000\n"


@pytest.mark.parametrize(
    "timestamp",
    [
        pytest.param(1.5, id="fractional_float"),
        pytest.param(float("nan"), id="nan"),
        pytest.param(True, id="bool"),
        pytest.param("1500000000", id="string"),
    ],
)
def test_invalid_timestamp(timestamp: Any) -> None:
    with pytest.raises(InvalidFieldValueError):
        Point("cpu", value(1), time=timestamp)
    with pytest.raises(InvalidFieldValueError):
        Point("cpu", value(1)).with_time(timestamp)


def test_epoch_timestamp_is_written() -> None:
    assert encode(Point("cpu", value(1), time=0)) == b"cpu value=1i 0\n"


def test_unset_timestamp_is_omitted() -> None:
    assert encode(Point("cpu", value(1))) == b"cpu value=1i\n"


def test_no_fields() -> None:
    with pytest.raises(NoFieldsError):
        encode(Point("cpu", {}))


def test_unsupported_field_type() -> None:
    with pytest.raises(UnsupportedFieldTypeError) as e:
        encode(Point("cpu", {"ok": 1, "bad": [1, 2]}))
    assert e.value.field == "bad"
    assert e.value.message == "invalid field type: list"


def test_invalid_values() -> None:
    with pytest.raises(InvalidFieldValueError):
        encode(Point("cpu", value(float("nan"))))
    with pytest.raises(InvalidFieldValueError):
        encode(Point("", value(1)))


@pytest.mark.parametrize(
    "field_value",
    [
        pytest.param(2**63, id="above_int64"),
        pytest.param(2**64, id="above_uint64"),
        pytest.param(-(2**63) - 1, id="below_int64"),
    ],
)
def test_integer_out_of_range(field_value: int) -> None:
    with pytest.raises(InvalidFieldValueError):
        encode(Point("cpu", value(field_value)))


def test_integer_range_limits() -> None:
    assert format_value(2**63 - 1) == "9223372036854775807i"
    assert format_value(-(2**63)) == "-9223372036854775808i"


def test_encode_batch() -> None:
    points = [
        Point("cpu", value(1), time=1),
        Point("mem", value(2), tags={"host": "a"}),
    ]
    assert encode_batch(points) == b"cpu value=1i 1\nmem,host=a value=2i\n"


def test_encode_batch_fails_on_bad_point() -> None:
    with pytest.raises(NoFieldsError):
        encode_batch([Point("cpu", value(1)), Point("cpu", {})])
