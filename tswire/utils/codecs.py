from abc import ABC, abstractmethod
from typing import Generic, TypeVar

TEncoded = TypeVar("TEncoded")

TDecoded = TypeVar("TDecoded")


class WireFormat(ABC):
    """
    A named representation of data on the wire. Both directions of the
    protocol (points going out, query results coming back) are plugged in
    through implementations of this interface so transports only need to
    know the content type label.
    """

    @property
    @abstractmethod
    def content_type(self) -> str:
        raise NotImplementedError


class Encoder(Generic[TEncoded, TDecoded], ABC):
    @abstractmethod
    def encode(self, value: TDecoded) -> TEncoded:
        raise NotImplementedError


class Decoder(Generic[TEncoded, TDecoded], ABC):
    @abstractmethod
    def decode(self, value: TEncoded) -> TDecoded:
        raise NotImplementedError
