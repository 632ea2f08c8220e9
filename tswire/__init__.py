from tswire.cursor import Cursor, Message, ResultSet, Row, Series, new_cursor
from tswire.errors import (
    DecodeError,
    EncodeError,
    EndOfStream,
    InvalidFieldValueError,
    InvalidPrecisionError,
    NoFieldsError,
    ResultError,
    SeriesTruncatedError,
    UnexpectedEndOfStream,
    UnknownFormatError,
    UnsupportedFieldTypeError,
    WireError,
)
from tswire.iterate import STOP, for_each_result, for_each_row, for_each_series
from tswire.point import Point, Tag, sort_tags, value
from tswire.precision import Precision
from tswire.protocol import (
    DEFAULT_WRITE_PROTOCOL,
    DEFAULT_WRITE_TYPE,
    LineProtocol,
    encode,
    encode_batch,
)
from tswire.writer import PointWriter

__all__ = [
    "Cursor",
    "DEFAULT_WRITE_PROTOCOL",
    "DEFAULT_WRITE_TYPE",
    "DecodeError",
    "EncodeError",
    "EndOfStream",
    "InvalidFieldValueError",
    "InvalidPrecisionError",
    "LineProtocol",
    "Message",
    "NoFieldsError",
    "Point",
    "PointWriter",
    "Precision",
    "ResultError",
    "ResultSet",
    "Row",
    "STOP",
    "Series",
    "SeriesTruncatedError",
    "Tag",
    "UnexpectedEndOfStream",
    "UnknownFormatError",
    "UnsupportedFieldTypeError",
    "WireError",
    "encode",
    "encode_batch",
    "for_each_result",
    "for_each_row",
    "for_each_series",
    "new_cursor",
    "sort_tags",
    "value",
]
