from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import IO, Any, Iterator, Optional, Sequence, Tuple, Union

from tswire.errors import EndOfStream, UnknownFormatError
from tswire.point import Tags
from tswire.precision import Precision
from tswire.values import TIME_COLUMN, ValueKind, classify

JSON_FORMATS = frozenset(["json", "application/json"])


class NavigationState(Enum):
    READY = "ready"
    # Skipping continuation chunks that belong to something the caller has
    # moved past.
    DRAINING = "draining"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class Message:
    """
    An informational message sent by the server alongside a result.
    """

    level: str
    text: str


class Row(ABC):
    """
    A row of values aligned with the columns of its result set.
    """

    @property
    @abstractmethod
    def columns(self) -> Sequence[str]:
        raise NotImplementedError

    @property
    @abstractmethod
    def values(self) -> Sequence[Any]:
        raise NotImplementedError

    @abstractmethod
    def time(self) -> Optional[int]:
        """
        The value of the ``time`` column as nanoseconds since the epoch, or
        None if the row has no usable time value.
        """
        raise NotImplementedError

    @abstractmethod
    def value_by_name(self, column: str) -> Any:
        """
        The value for the named column, or None if the column does not exist.
        """
        raise NotImplementedError

    def value(self, index: int) -> Any:
        return self.values[index]

    def kind(self, index: int) -> Optional[ValueKind]:
        columns = self.columns
        is_time = index < len(columns) and columns[index] == TIME_COLUMN
        return classify(self.values[index], time_column=is_time)

    def __getitem__(self, key: Union[int, str]) -> Any:
        if isinstance(key, str):
            if key not in self.columns:
                raise KeyError(key)
            return self.value_by_name(key)
        return self.value(key)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)


class Series(ABC):
    """
    A group of rows within a result sharing a measurement name and tag set.
    Rows are read forward only.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def tags(self) -> Tags:
        """The tags of the series sorted by key."""
        raise NotImplementedError

    @property
    @abstractmethod
    def columns(self) -> Sequence[str]:
        raise NotImplementedError

    @abstractmethod
    def length(self) -> Tuple[int, bool]:
        """
        The number of rows received so far for this series across every
        chunk, and whether the series is known to be complete.
        """
        raise NotImplementedError

    @abstractmethod
    def next_row(self) -> Row:
        """
        Returns the next row, following the series into later chunks when it
        was truncated. Raises ``EndOfStream`` when there are no more rows.
        """
        raise NotImplementedError

    def __iter__(self) -> Iterator[Row]:
        while True:
            try:
                yield self.next_row()
            except EndOfStream:
                return


class ResultSet(ABC):
    """
    The result of a single statement.
    """

    @property
    @abstractmethod
    def columns(self) -> Sequence[str]:
        raise NotImplementedError

    @property
    @abstractmethod
    def messages(self) -> Sequence[Message]:
        raise NotImplementedError

    @abstractmethod
    def index(self, name: str) -> int:
        """
        The position of the named column, or -1 if there is no such column.
        """
        raise NotImplementedError

    @abstractmethod
    def next_series(self) -> Series:
        """
        Returns the next series. This invalidates the series previously
        returned and skips any of its rows that were not read. Raises
        ``EndOfStream`` when there are no more series.
        """
        raise NotImplementedError

    def __iter__(self) -> Iterator[Series]:
        while True:
            try:
                yield self.next_series()
            except EndOfStream:
                return


class Cursor(ABC):
    """
    Reads and decodes the results of a query from a response stream.
    """

    @abstractmethod
    def next_result_set(self) -> ResultSet:
        """
        Returns the next result set. This invalidates the result set
        previously returned by this cursor and discards any data that was not
        read from it, including the remaining chunks of a partial result.
        Results that were already read remain readable from memory.

        Raises ``EndOfStream`` once the stream is finished and ``ResultError``
        when the next statement failed on the server.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> Cursor:
        return self

    def __exit__(self, type: Any, value: Any, traceback: Any) -> None:
        self.close()

    def __iter__(self) -> Iterator[ResultSet]:
        while True:
            try:
                yield self.next_result_set()
            except EndOfStream:
                return


def new_cursor(
    stream: IO[bytes],
    format: str,
    epoch: Union[Precision, str, None] = None,
) -> Cursor:
    """
    Constructs a cursor that decodes ``stream`` according to ``format``,
    which is usually the Content-Type of the response. Supported formats:

      * json, application/json

    Nothing is read from the stream if the format is not supported.
    """
    media_type = format.split(";", 1)[0].strip().lower()
    if media_type in JSON_FORMATS:
        from tswire.json_cursor import JSONCursor

        return JSONCursor(
            stream, epoch=Precision.parse(epoch) if epoch is not None else None
        )

    raise UnknownFormatError(format, format=format)
