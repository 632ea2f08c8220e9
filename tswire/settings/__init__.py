from __future__ import annotations

import os
from typing import Any, MutableMapping, Optional

from tswire.settings.validation import validate_settings

# All settings must be uppercased, have a default value and cannot start with _.
# Anything following this convention can be overridden by the module named in
# the TSWIRE_SETTINGS environment variable.

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(message)s"

TESTING = False

SENTRY_DSN: Optional[str] = os.environ.get("SENTRY_DSN")
SENTRY_TRACE_SAMPLE_RATE = float(os.environ.get("SENTRY_TRACE_SAMPLE_RATE", 0))

# Number of bytes requested from the response stream on each read while
# looking for the end of the next JSON document.
READ_CHUNK_SIZE = int(os.environ.get("TSWIRE_READ_CHUNK_SIZE", 64 * 1024))

# Number of encoded lines the point writer accumulates before writing to the
# underlying sink.
WRITE_CHUNK_SIZE = int(os.environ.get("TSWIRE_WRITE_CHUNK_SIZE", 5000))

# Timestamp precision used by the CLI when none is given.
DEFAULT_PRECISION = os.environ.get("TSWIRE_DEFAULT_PRECISION", "ns")


def _load_settings(obj: MutableMapping[str, Any] = locals()) -> None:
    """Load settings from the path provided in the TSWIRE_SETTINGS environment
    variable if provided. Users can provide a short name like `test` that will
    be expanded to `settings_test.py` in this package, or they can provide a
    full absolute path such as `/foo/bar/my_settings.py`."""

    import importlib
    import importlib.abc
    import importlib.util

    settings = os.environ.get("TSWIRE_SETTINGS")

    if settings:
        if settings.startswith("/"):
            if not settings.endswith(".py"):
                settings += ".py"

            settings_spec = importlib.util.spec_from_file_location(
                "tswire.settings.custom", settings
            )
            assert settings_spec is not None
            settings_module = importlib.util.module_from_spec(settings_spec)
            assert isinstance(settings_spec.loader, importlib.abc.Loader)
            settings_spec.loader.exec_module(settings_module)
        else:
            module_format = (
                ".%s" if settings.startswith("settings_") else ".settings_%s"
            )
            settings_module = importlib.import_module(
                module_format % settings, "tswire.settings"
            )

        for attr in dir(settings_module):
            if attr.isupper():
                obj[attr] = getattr(settings_module, attr)


_load_settings()
validate_settings(locals())
