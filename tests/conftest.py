import os
from typing import Callable

import pytest

os.environ.setdefault("TSWIRE_SETTINGS", "test")

from tests.helpers import TrackingStream  # noqa: E402
from tswire import settings  # noqa: E402
from tswire.cursor import Cursor, new_cursor  # noqa: E402


def pytest_configure() -> None:
    assert (
        settings.TESTING
    ), "settings.TESTING is False, try `TSWIRE_SETTINGS=test`"


@pytest.fixture
def make_cursor() -> Callable[[str], Cursor]:
    def _make(body: str) -> Cursor:
        return new_cursor(TrackingStream(body.encode("utf-8")), "json")

    return _make
