from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from typing import (
    IO,
    Any,
    Deque,
    Dict,
    List,
    Mapping,
    MutableSequence,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

import rapidjson

from tswire import settings
from tswire.cursor import Cursor, Message, NavigationState, ResultSet, Row, Series
from tswire.errors import (
    DecodeError,
    EndOfStream,
    ResultError,
    SeriesTruncatedError,
    UnexpectedEndOfStream,
    WireError,
)
from tswire.point import Tags, sort_tags
from tswire.precision import Precision
from tswire.utils.codecs import Decoder
from tswire.values import TIME_COLUMN, time_from_value

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SeriesChunk:
    name: str
    tags: Mapping[str, str]
    columns: Sequence[str]
    values: Sequence[List[Any]]
    partial: bool


@dataclass(frozen=True)
class ResultChunk:
    """
    One entry of the ``results`` array of a response document. A result that
    is split across documents arrives as several chunks, all but the last
    one marked partial.
    """

    series: Sequence[SeriesChunk]
    messages: Sequence[Message]
    partial: bool
    error: str


def _expect(value: Any, expected: Type[T], what: str) -> T:
    if not isinstance(value, expected):
        raise DecodeError(
            f"expected {what} to be {expected.__name__}, got {type(value).__name__}"
        )
    return value


class DocumentDecoder(Decoder[bytes, Sequence[ResultChunk]]):
    """
    Decodes a single response document of the shape::

        {"results": [{"series": [...], "messages": [...], "partial": bool, "error": str}]}

    Missing members take their zero value. A top level ``error`` member (sent
    by the server when the whole request failed) is surfaced as an errored
    result after any results in the same document.
    """

    def decode(self, value: bytes) -> Sequence[ResultChunk]:
        try:
            document = rapidjson.loads(value, number_mode=rapidjson.NM_NONE)
        except ValueError as e:
            raise DecodeError(f"invalid JSON document: {e}") from e

        document = _expect(document, dict, "the response document")
        results = [
            self.__decode_result(_expect(result, dict, "a result"))
            for result in _expect(document.get("results") or [], list, "results")
        ]

        error = document.get("error")
        if error:
            results.append(
                ResultChunk(
                    series=[],
                    messages=[],
                    partial=False,
                    error=_expect(error, str, "error"),
                )
            )
        return results

    def __decode_result(self, result: Mapping[str, Any]) -> ResultChunk:
        return ResultChunk(
            series=[
                self.__decode_series(_expect(series, dict, "a series"))
                for series in _expect(result.get("series") or [], list, "series")
            ],
            messages=[
                self.__decode_message(_expect(message, dict, "a message"))
                for message in _expect(
                    result.get("messages") or [], list, "messages"
                )
            ],
            partial=_expect(result.get("partial") or False, bool, "partial"),
            error=_expect(result.get("error") or "", str, "error"),
        )

    def __decode_series(self, series: Mapping[str, Any]) -> SeriesChunk:
        tags = _expect(series.get("tags") or {}, dict, "tags")
        for tag_value in tags.values():
            _expect(tag_value, str, "a tag value")

        columns = _expect(series.get("columns") or [], list, "columns")
        for column in columns:
            _expect(column, str, "a column name")

        values = _expect(series.get("values") or [], list, "values")
        for row in values:
            _expect(row, list, "a row")

        return SeriesChunk(
            name=_expect(series.get("name") or "", str, "name"),
            tags=tags,
            columns=columns,
            values=values,
            partial=_expect(series.get("partial") or False, bool, "partial"),
        )

    def __decode_message(self, message: Mapping[str, Any]) -> Message:
        return Message(
            level=_expect(message.get("level") or "", str, "level"),
            text=_expect(message.get("text") or "", str, "text"),
        )


_OPENERS = frozenset(b"{[")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")

_NON_WHITESPACE_RE = re.compile(rb"[^ \t\r\n]")
_STRUCTURAL_RE = re.compile(rb'[\[\]{}"]')
_STRING_SPECIAL_RE = re.compile(rb'["\\]')


class DocumentReader:
    """
    Splits a stream of JSON documents written back to back without any
    separator into the bytes of each document.

    The reader only tracks nesting depth and string state to find where a
    document ends; validating the document is left to the decoder. Reads
    block for as long as the underlying stream blocks.
    """

    def __init__(self, stream: IO[bytes], chunk_size: Optional[int] = None) -> None:
        if chunk_size is None:
            chunk_size = settings.READ_CHUNK_SIZE
        elif not chunk_size > 0:
            raise ValueError("chunk size must be greater than zero")

        self.__stream = stream
        self.__chunk_size = chunk_size
        self.__buffer = bytearray()
        self.__eof = False
        self.__offset = 0  # stream offset of the start of the buffer
        self.__reset()

    def __reset(self) -> None:
        self.__start: Optional[int] = None
        self.__position = 0
        self.__depth = 0
        self.__in_string = False
        self.__escaped = False

    def read_document(self) -> Optional[bytes]:
        """
        Returns the bytes of the next document, or None if the stream ended
        cleanly between documents.
        """
        while True:
            end = self.__scan()
            if end is not None:
                assert self.__start is not None
                document = bytes(self.__buffer[self.__start : end])
                del self.__buffer[:end]
                self.__offset += end
                self.__reset()
                return document

            if self.__eof:
                if self.__start is None:
                    self.__buffer.clear()
                    return None
                raise UnexpectedEndOfStream(
                    "stream ended in the middle of a document",
                    offset=self.__offset + self.__start,
                )

            data = self.__stream.read(self.__chunk_size)
            if not data:
                self.__eof = True
            else:
                self.__buffer.extend(data)

    def __scan(self) -> Optional[int]:
        buffer = self.__buffer
        position = self.__position

        if self.__start is None:
            match = _NON_WHITESPACE_RE.search(buffer, position)
            if match is None:
                self.__position = len(buffer)
                return None
            position = match.start()
            if buffer[position] not in _OPENERS:
                raise DecodeError(
                    "expected the start of a JSON document",
                    offset=self.__offset + position,
                )
            self.__start = position
            self.__depth = 1
            position += 1

        while True:
            if self.__in_string:
                if self.__escaped:
                    if position >= len(buffer):
                        break
                    position += 1
                    self.__escaped = False
                    continue

                match = _STRING_SPECIAL_RE.search(buffer, position)
                if match is None:
                    position = len(buffer)
                    break
                position = match.end()
                if buffer[match.start()] == _BACKSLASH:
                    self.__escaped = True
                else:
                    self.__in_string = False
            else:
                match = _STRUCTURAL_RE.search(buffer, position)
                if match is None:
                    position = len(buffer)
                    break
                position = match.end()
                char = buffer[match.start()]
                if char == _QUOTE:
                    self.__in_string = True
                elif char in _OPENERS:
                    self.__depth += 1
                else:
                    self.__depth -= 1
                    if self.__depth == 0:
                        return position

        self.__position = position
        return None


class JSONCursor(Cursor):
    """
    Cursor over a JSON query response, possibly made of several chunked
    documents.

    The cursor owns every piece of navigation state. Result sets and series
    remember the generation they were created in; once the cursor (or the
    result set, for series) moves on, the generation no longer matches and
    the stale handle can only serve rows that are already in memory.
    """

    def __init__(
        self,
        stream: IO[bytes],
        epoch: Optional[Precision] = None,
        chunk_size: Optional[int] = None,
    ) -> None:
        self.__stream = stream
        self.__reader = DocumentReader(stream, chunk_size)
        self.__decoder = DocumentDecoder()
        self.__epoch = epoch

        self.__pending: Deque[ResultChunk] = deque()
        self.__current: Optional[JSONResultSet] = None
        self.__generation = 0
        self.__state = NavigationState.READY
        self.__failure: Optional[WireError] = None
        self.__documents = 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.__state.value} ({self.__documents} documents read)>"

    @property
    def state(self) -> NavigationState:
        return self.__state

    @property
    def epoch(self) -> Optional[Precision]:
        return self.__epoch

    def _is_attached(self, generation: int) -> bool:
        return generation == self.__generation

    def __fail(self, error: WireError) -> WireError:
        self.__state = NavigationState.FAILED
        self.__failure = error
        return error

    def __next_chunk(self) -> ResultChunk:
        """
        Returns the next buffered result, decoding more documents from the
        stream as needed. Raises ``EndOfStream`` if the stream is finished.
        """
        if self.__failure is not None:
            raise self.__failure

        while not self.__pending:
            try:
                document = self.__reader.read_document()
                if document is None:
                    raise EndOfStream()
                results = self.__decoder.decode(document)
            except (DecodeError, UnexpectedEndOfStream) as e:
                raise self.__fail(e)

            self.__documents += 1
            logger.debug(
                "Decoded document %d with %d results", self.__documents, len(results)
            )
            self.__pending.extend(results)

        return self.__pending.popleft()

    def _next_continuation(self) -> ResultChunk:
        """
        Returns the next chunk of a partial result. The stream is not allowed
        to end here since the previous chunk promised more data.
        """
        try:
            return self.__next_chunk()
        except EndOfStream:
            raise self.__fail(UnexpectedEndOfStream()) from None

    def next_result_set(self) -> ResultSet:
        if self.__state is NavigationState.FAILED:
            assert self.__failure is not None
            raise self.__failure
        elif self.__state is NavigationState.EXHAUSTED:
            raise EndOfStream()

        if self.__current is not None:
            current, self.__current = self.__current, None
            # Detach the current result set so that it can no longer read
            # from the stream.
            self.__generation += 1

            # The rest of a partial result is skipped, errored chunks
            # included, until the chunk that completes it.
            if current._partial:
                self.__state = NavigationState.DRAINING
                drained = 0
                partial = True
                while partial:
                    partial = self._next_continuation().partial
                    drained += 1
                logger.debug("Drained %d chunks of a partial result", drained)
                self.__state = NavigationState.READY

        try:
            chunk = self.__next_chunk()
        except EndOfStream:
            self.__state = NavigationState.EXHAUSTED
            raise

        if chunk.error:
            # The errored result is consumed; the next call moves past it.
            raise ResultError(chunk.error)

        self.__current = JSONResultSet(self, chunk, self.__generation)
        return self.__current

    def close(self) -> None:
        self.__stream.close()
        self.__pending.clear()
        self.__current = None
        self.__generation += 1
        if self.__state is not NavigationState.FAILED:
            self.__state = NavigationState.EXHAUSTED


class JSONResultSet(ResultSet):
    def __init__(self, cursor: JSONCursor, chunk: ResultChunk, generation: int) -> None:
        self.__cursor = cursor
        self.__generation = generation

        self.__series = chunk.series
        self.__partial = chunk.partial
        self.__index = 0
        self.__messages: MutableSequence[Message] = list(chunk.messages)

        # Columns are only sent along with each series even though they are
        # the same for the whole result, so they are taken from the first
        # series once and reused for everything in this result.
        self.__columns: Sequence[str] = (
            tuple(chunk.series[0].columns) if chunk.series else ()
        )
        self.__columns_by_name: Optional[Dict[str, int]] = None

        self.__active: Optional[JSONSeries] = None
        self.__series_generation = 0
        self.__state = NavigationState.READY
        self.__failure: Optional[WireError] = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: columns={list(self.__columns)!r} partial={self.__partial}>"

    @property
    def _partial(self) -> bool:
        return self.__partial

    @property
    def epoch(self) -> Optional[Precision]:
        return self.__cursor.epoch

    @property
    def state(self) -> NavigationState:
        return self.__state

    @property
    def columns(self) -> Sequence[str]:
        return self.__columns

    @property
    def messages(self) -> Sequence[Message]:
        return self.__messages

    def index(self, name: str) -> int:
        if not self.__columns:
            return -1

        if self.__columns_by_name is None:
            self.__columns_by_name = {}
            for i, column in enumerate(self.__columns):
                self.__columns_by_name.setdefault(column, i)
        return self.__columns_by_name.get(name, -1)

    def __load_continuation(self) -> None:
        if not self.__cursor._is_attached(self.__generation):
            raise UnexpectedEndOfStream("result set is no longer active")

        chunk = self.__cursor._next_continuation()
        if chunk.error:
            # An error ends the chain of chunks for this result.
            self.__partial = False
            raise ResultError(chunk.error)

        self.__series = chunk.series
        self.__partial = chunk.partial
        self.__index = 0
        self.__messages.extend(chunk.messages)

    def __ensure_buffered(self, truncated: bool) -> None:
        """
        Makes sure there is a series entry at the current index, loading more
        chunks of this result while it is partial. ``truncated`` selects the
        error for running out: a series continuation that never arrived, or
        the normal end of the result.
        """
        while self.__index >= len(self.__series):
            if not self.__partial:
                if truncated:
                    raise SeriesTruncatedError()
                raise EndOfStream()
            self.__load_continuation()

    def _is_active(self, series_generation: int) -> bool:
        return series_generation == self.__series_generation

    def _next_continuation_series(self, series_generation: int) -> SeriesChunk:
        if not self._is_active(series_generation):
            raise UnexpectedEndOfStream("series is no longer active")

        self.__ensure_buffered(truncated=True)
        entry = self.__series[self.__index]
        self.__index += 1
        return entry

    def next_series(self) -> Series:
        if self.__state is NavigationState.FAILED:
            assert self.__failure is not None
            raise self.__failure
        elif self.__state is NavigationState.EXHAUSTED:
            raise EndOfStream()

        try:
            return self.__next_series()
        except EndOfStream:
            self.__state = NavigationState.EXHAUSTED
            raise
        except WireError as e:
            self.__state = NavigationState.FAILED
            self.__failure = e
            raise

    def __next_series(self) -> Series:
        if self.__active is not None:
            active, self.__active = self.__active, None
            self.__series_generation += 1

            # Skip the entries that continue the rows of the previous series,
            # along with the entry that completes it.
            if active._partial:
                self.__state = NavigationState.DRAINING
                while True:
                    self.__ensure_buffered(truncated=True)
                    if not self.__series[self.__index].partial:
                        break
                    self.__index += 1
                self.__index += 1
                self.__state = NavigationState.READY

        self.__ensure_buffered(truncated=False)
        entry = self.__series[self.__index]
        self.__index += 1

        self.__active = JSONSeries(self, entry, self.__series_generation)
        return self.__active


class JSONSeries(Series):
    def __init__(
        self, result_set: JSONResultSet, entry: SeriesChunk, generation: int
    ) -> None:
        self.__result_set = result_set
        self.__generation = generation

        self.__name = entry.name
        self.__tags = sort_tags(entry.tags)
        self.__values = entry.values
        self.__offset = 0
        self.__size = len(entry.values)
        self.__partial = entry.partial

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.__name} tags={self.__tags!r} rows={self.__size}>"

    @property
    def _partial(self) -> bool:
        return self.__partial

    @property
    def name(self) -> str:
        return self.__name

    @property
    def tags(self) -> Tags:
        return self.__tags

    @property
    def columns(self) -> Sequence[str]:
        return self.__result_set.columns

    def length(self) -> Tuple[int, bool]:
        return self.__size, not self.__partial

    def next_row(self) -> Row:
        while self.__offset >= len(self.__values):
            if not self.__partial:
                raise EndOfStream()

            # The rest of this series is in the next series entry, which may
            # be in a later document.
            entry = self.__result_set._next_continuation_series(self.__generation)
            self.__values = entry.values
            self.__offset = 0
            self.__size += len(entry.values)
            self.__partial = entry.partial

        values = self.__values[self.__offset]
        self.__offset += 1
        return JSONRow(self.__result_set, values)


class JSONRow(Row):
    def __init__(self, result_set: JSONResultSet, values: List[Any]) -> None:
        self.__result_set = result_set
        self.__values = values

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.__values!r})"

    @property
    def columns(self) -> Sequence[str]:
        return self.__result_set.columns

    @property
    def values(self) -> List[Any]:
        return self.__values

    def value_by_name(self, column: str) -> Any:
        index = self.__result_set.index(column)
        if index == -1 or index >= len(self.__values):
            return None
        return self.__values[index]

    def time(self) -> Optional[int]:
        return time_from_value(
            self.value_by_name(TIME_COLUMN), self.__result_set.epoch
        )
