from __future__ import annotations

import calendar
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, NamedTuple, Optional, Tuple, Union

from tswire.errors import InvalidFieldValueError

FieldValue = Union[float, int, str, bool]

Fields = Mapping[str, FieldValue]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Tag(NamedTuple):
    """
    A key/value pair of strings that is indexed when inserted into a
    measurement.
    """

    key: str
    value: str


Tags = Tuple[Tag, ...]

TagsLike = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def sort_tags(tags: TagsLike) -> Tags:
    """
    Returns the tags ordered by key, which is the order the server handles
    most efficiently. The encoder never reorders tags on its own.
    """
    return tuple(sorted(_to_tags(tags), key=lambda tag: tag.key))


def _to_tags(tags: TagsLike) -> Tags:
    if isinstance(tags, Mapping):
        return tuple(Tag(key, value) for key, value in tags.items())
    return tuple(Tag(*tag) for tag in tags)


def value(v: FieldValue) -> Fields:
    """
    Convenience for the common case of a point with a single field named
    ``value``.
    """
    return {"value": v}


def timestamp_ns(dt: datetime) -> int:
    """
    Nanoseconds since the epoch for ``dt``. Naive datetimes are treated as
    UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    seconds = calendar.timegm(dt.utctimetuple())
    return seconds * 1_000_000_000 + dt.microsecond * 1_000


def to_datetime(ns: int) -> datetime:
    """
    The UTC datetime for a nanosecond timestamp. Sub-microsecond precision is
    dropped since ``datetime`` cannot represent it.
    """
    return EPOCH + timedelta(microseconds=ns // 1_000)


def _to_timestamp(time: Union[int, float, datetime, None]) -> Optional[int]:
    if time is None:
        return None
    elif isinstance(time, datetime):
        return timestamp_ns(time)
    elif isinstance(time, int) and not isinstance(time, bool):
        return time
    elif isinstance(time, float) and time.is_integer():
        return int(time)
    raise InvalidFieldValueError(
        f"timestamp must be an integer count of nanoseconds, got {time!r}",
        time=repr(time),
    )


@dataclass(frozen=True)
class Point:
    """
    A single sample to be written to a measurement.

    ``time`` is a nanosecond timestamp. ``None`` means the timestamp is unset
    and the server will assign one; ``0`` is the epoch and is written.
    """

    name: str
    fields: Fields
    tags: Tags = field(default=())
    time: Optional[int] = None

    def __init__(
        self,
        name: str,
        fields: Fields,
        tags: Optional[TagsLike] = None,
        time: Union[int, float, datetime, None] = None,
    ) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "tags", _to_tags(tags) if tags is not None else ())
        object.__setattr__(self, "time", _to_timestamp(time))

    @property
    def has_time_set(self) -> bool:
        return self.time is not None

    def with_time(self, time: Union[int, float, datetime, None]) -> Point:
        return replace(self, time=_to_timestamp(time))

    def with_tags(self, tags: TagsLike) -> Point:
        return replace(self, tags=_to_tags(tags))

    def to_dict(self) -> Mapping[str, Any]:
        return {
            "name": self.name,
            "tags": {tag.key: tag.value for tag in self.tags},
            "fields": dict(self.fields),
            "time": self.time,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Point:
        return cls(
            name=data["name"],
            fields=data.get("fields") or {},
            tags=data.get("tags") or (),
            time=data.get("time"),
        )

