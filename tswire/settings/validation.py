from typing import Any, Mapping


def validate_settings(locals: Mapping[str, Any]) -> None:
    for name in ("READ_CHUNK_SIZE", "WRITE_CHUNK_SIZE"):
        value = locals.get(name)
        if not isinstance(value, int) or value <= 0:
            raise ValueError(f"{name} must be a positive integer, got {value!r}")

    from tswire.errors import InvalidPrecisionError
    from tswire.precision import Precision

    try:
        Precision.parse(locals.get("DEFAULT_PRECISION"))
    except InvalidPrecisionError as e:
        raise ValueError(f"DEFAULT_PRECISION is invalid: {e.message}") from e
