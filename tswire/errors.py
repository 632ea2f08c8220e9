from __future__ import annotations

from typing import Any, Dict, List, TypedDict, Union, cast

# mypy has not figured out recursive types yet so this can't be totally typesafe
JsonSerializable = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]


class WireErrorDict(TypedDict):
    __type__: str
    __name__: str
    __message__: str
    __extra_data__: Dict[str, JsonSerializable]


class WireError(Exception):
    """
    Base class for every error raised by the encoder and the result decoder.

    Additional context is passed as keyword arguments and kept in
    ``extra_data`` so it can be attached to structured log events or Sentry
    contexts without parsing the message.
    """

    def __init__(self, message: str = "", **extra_data: JsonSerializable) -> None:
        self.extra_data = extra_data or {}
        self.message = self.format_message(message) if message else ""
        super().__init__(self.message)

    def format_message(self, message: str) -> str:
        """
        Can be overridden to handle custom formatting
        """
        return message

    def to_dict(self) -> WireErrorDict:
        return {
            "__type__": "WireError",
            "__name__": self.__class__.__name__,
            "__message__": self.message,
            "__extra_data__": self.extra_data,
        }


class EncodeError(WireError):
    pass


class NoFieldsError(EncodeError):
    def __init__(self, message: str = "point has no fields", **extra_data: JsonSerializable) -> None:
        super().__init__(message, **extra_data)


class UnsupportedFieldTypeError(EncodeError):
    def format_message(self, message: str) -> str:
        if "type" in self.extra_data:
            return f"{message}: {self.extra_data['type']}"
        return message

    @property
    def field(self) -> str:
        return cast(str, self.extra_data.get("field", ""))


class InvalidFieldValueError(EncodeError):
    pass


class DecodeError(WireError):
    pass


class UnexpectedEndOfStream(WireError):
    def __init__(
        self, message: str = "unexpected end of stream", **extra_data: JsonSerializable
    ) -> None:
        super().__init__(message, **extra_data)


class SeriesTruncatedError(WireError):
    def __init__(
        self, message: str = "truncated output", **extra_data: JsonSerializable
    ) -> None:
        super().__init__(message, **extra_data)


class ResultError(WireError):
    """
    A statement failed on the server. The message is the server's error text.
    """

    @property
    def error(self) -> str:
        return self.message


class UnknownFormatError(WireError):
    def format_message(self, message: str) -> str:
        return f"unknown format: {message}"

    @property
    def format(self) -> str:
        return cast(str, self.extra_data.get("format", ""))


class InvalidPrecisionError(WireError):
    def format_message(self, message: str) -> str:
        return f"invalid precision: {message}"


class EndOfStream(Exception):
    """
    Raised when there is nothing more to read at a navigation level. This is
    the normal way for a cursor, result set or series to finish and is not a
    ``WireError``.
    """
