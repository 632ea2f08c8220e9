from __future__ import annotations

import math
from abc import abstractmethod
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

from tswire.errors import (
    InvalidFieldValueError,
    NoFieldsError,
    UnsupportedFieldTypeError,
)
from tswire.point import Point
from tswire.precision import Precision, truncate
from tswire.utils.codecs import Encoder, WireFormat
from tswire.values import ValueKind, classify

LINE_PROTOCOL_V1_CONTENT_TYPE = "application/x-influxdb-line-protocol-v1"

# Integer fields are stored as signed 64 bit values.
MIN_INTEGER = -(2**63)
MAX_INTEGER = 2**63 - 1

EscapeCodes = Sequence[Tuple[str, str]]

# Replacements are applied in order, so the escape character itself has to
# come first wherever it is escaped.
MEASUREMENT_ESCAPE_CODES: EscapeCodes = [(",", r"\,"), (" ", r"\ ")]
TAG_ESCAPE_CODES: EscapeCodes = [(",", r"\,"), (" ", r"\ "), ("=", r"\=")]
STRING_ESCAPE_CODES: EscapeCodes = [("\\", "\\\\"), ('"', '\\"')]


def escape(value: str, codes: EscapeCodes) -> str:
    for s, esc in codes:
        value = value.replace(s, esc)
    return value


def escape_measurement(value: str) -> str:
    return escape(value, MEASUREMENT_ESCAPE_CODES)


def escape_tag(value: str) -> str:
    """Escapes a tag key, tag value or field key."""
    return escape(value, TAG_ESCAPE_CODES)


def escape_string(value: str) -> str:
    return escape(value, STRING_ESCAPE_CODES)


def format_value(value: Any) -> str:
    """
    Formats a field value for the wire. Floats use six significant digits,
    integers carry an ``i`` suffix so the server does not store them as
    floats, and strings are quoted.
    """
    kind = classify(value)
    if kind is ValueKind.FLOAT:
        if not math.isfinite(value):
            raise InvalidFieldValueError(
                f"non-finite float field value: {value!r}", value=str(value)
            )
        return "%.6g" % value
    elif kind is ValueKind.INTEGER:
        if not MIN_INTEGER <= value <= MAX_INTEGER:
            raise InvalidFieldValueError(
                f"integer field value out of range: {value}", value=str(value)
            )
        return f"{value}i"
    elif kind is ValueKind.STRING:
        return f'"{escape_string(value)}"'
    elif kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    raise UnsupportedFieldTypeError("invalid field type", type=type(value).__name__)


class Protocol(Encoder[bytes, Point], WireFormat):
    """
    Serializes points into the body of a write request.
    """

    @abstractmethod
    def encode(self, value: Point) -> bytes:
        raise NotImplementedError

    def encode_batch(self, points: Iterable[Point]) -> bytes:
        """
        Encodes every point, one after the other. The first point that cannot
        be encoded aborts the whole batch.
        """
        return b"".join(self.encode(point) for point in points)


class LineProtocolV1(Protocol):
    def __init__(self, precision: Union[Precision, str, None] = None) -> None:
        self.__precision = Precision.parse(precision)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: precision={self.__precision}>"

    @property
    def content_type(self) -> str:
        return LINE_PROTOCOL_V1_CONTENT_TYPE

    @property
    def precision(self) -> Precision:
        return self.__precision

    def encode(self, value: Point) -> bytes:
        # The line is built completely before it is returned so a failure on
        # any field never leaves a partial line behind.
        if not value.fields:
            raise NoFieldsError(measurement=value.name)
        if not value.name:
            raise InvalidFieldValueError("measurement name must not be empty")

        parts = [escape_measurement(value.name)]
        for tag in value.tags:
            parts.append(f",{escape_tag(tag.key)}={escape_tag(tag.value)}")
        parts.append(" ")

        fields = []
        for key, field_value in value.fields.items():
            try:
                formatted = format_value(field_value)
            except UnsupportedFieldTypeError as e:
                raise UnsupportedFieldTypeError(
                    "invalid field type", type=type(field_value).__name__, field=key
                ) from e
            fields.append(f"{escape_tag(key)}={formatted}")
        parts.append(",".join(fields))

        if value.time is not None:
            parts.append(f" {truncate(value.time, self.__precision)}")
        parts.append("\n")

        return "".join(parts).encode("utf-8")


class LineProtocol:
    """Factories for the supported versions of the line protocol."""

    @staticmethod
    def V1(precision: Union[Precision, str, None] = None) -> Protocol:
        return LineProtocolV1(precision)


DEFAULT_WRITE_PROTOCOL: Protocol = LineProtocol.V1()

DEFAULT_WRITE_TYPE = DEFAULT_WRITE_PROTOCOL.content_type


def encode(point: Point, precision: Optional[Union[Precision, str]] = None) -> bytes:
    """Encodes a point with the default write protocol."""
    if precision is None:
        return DEFAULT_WRITE_PROTOCOL.encode(point)
    return LineProtocolV1(precision).encode(point)


def encode_batch(
    points: Iterable[Point], precision: Optional[Union[Precision, str]] = None
) -> bytes:
    protocol = DEFAULT_WRITE_PROTOCOL if precision is None else LineProtocolV1(precision)
    return protocol.encode_batch(points)
