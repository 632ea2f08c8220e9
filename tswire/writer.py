from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import IO, Any, Generic, Iterable, List, Optional, TypeVar

from tswire import settings
from tswire.point import Point
from tswire.protocol import DEFAULT_WRITE_PROTOCOL, Protocol

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BatchWriter(ABC, Generic[T]):
    @abstractmethod
    def write(self, values: Iterable[T]) -> None:
        raise NotImplementedError


class PointWriter(BatchWriter[Point]):
    """
    Encodes points with a protocol and writes them to a byte sink (a socket
    file, a request body buffer, a file on disk).

    Encoded lines are accumulated and handed to the sink ``chunk_size`` lines
    at a time. Every call to ``write`` leaves the sink with whole lines only:
    if a point fails to encode, the lines for the points before it are
    written and the error is raised.

    This is not thread safe. Use one writer per sink.
    """

    def __init__(
        self,
        sink: IO[bytes],
        protocol: Optional[Protocol] = None,
        chunk_size: Optional[int] = None,
    ) -> None:
        if chunk_size is None:
            chunk_size = settings.WRITE_CHUNK_SIZE
        elif not chunk_size > 0:
            raise ValueError("chunk size must be greater than zero")

        self.__sink = sink
        self.__protocol = protocol if protocol is not None else DEFAULT_WRITE_PROTOCOL
        self.__chunk_size = chunk_size
        self.__buffer: List[bytes] = []
        self.__written = 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.__protocol!r} ({self.__written} points written)>"

    def __enter__(self) -> PointWriter:
        return self

    def __exit__(self, type: Any, value: Any, traceback: Any) -> None:
        self.flush()

    @property
    def content_type(self) -> str:
        return self.__protocol.content_type

    @property
    def written(self) -> int:
        return self.__written

    def flush(self) -> None:
        if not self.__buffer:
            return

        # The buffer is taken before writing so a failed write is never
        # retried with the same lines.
        lines, self.__buffer = self.__buffer, []
        logger.debug("Flushing buffer with %d lines", len(lines))
        self.__sink.write(b"".join(lines))
        self.__written += len(lines)

    def write(self, values: Iterable[Point]) -> None:
        try:
            for point in values:
                self.__buffer.append(self.__protocol.encode(point))
                if len(self.__buffer) >= self.__chunk_size:
                    self.flush()
        finally:
            self.flush()

    def write_points(self, *points: Point) -> None:
        self.write(points)
