import io


class TrackingStream(io.BytesIO):
    """
    In-memory response body that records how many reads were made, so tests
    can check the decoder does not read ahead.
    """

    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.reads = 0

    def read(self, size: "int | None" = -1) -> bytes:
        self.reads += 1
        return super().read(size)
