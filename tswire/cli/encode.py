from __future__ import annotations

from typing import IO, Optional

import click
import rapidjson
import structlog

from tswire import settings
from tswire.errors import EncodeError
from tswire.point import Point
from tswire.precision import Precision
from tswire.protocol import LineProtocol
from tswire.writer import PointWriter

logger = structlog.get_logger()


@click.command()
@click.option(
    "--precision",
    type=click.Choice([precision.value for precision in Precision]),
    default=None,
    help="Precision of the timestamps written. Defaults to the DEFAULT_PRECISION setting.",
)
@click.argument("input", type=click.File("rb"), default="-")
def encode(*, precision: Optional[str], input: IO[bytes]) -> None:
    """
    Read points as JSON lines from INPUT and write them as line protocol.

    Each line is an object with the keys "name", "fields" and optionally
    "tags" and "time" (nanoseconds since the epoch).
    """
    protocol = LineProtocol.V1(precision or settings.DEFAULT_PRECISION)
    output = click.get_binary_stream("stdout")

    with PointWriter(output, protocol) as writer:
        for lineno, line in enumerate(input, 1):
            if not line.strip():
                continue

            try:
                point = Point.from_dict(rapidjson.loads(line))
            except EncodeError as e:
                raise click.ClickException(f"line {lineno}: {e.message}")
            except (ValueError, KeyError, TypeError) as e:
                raise click.ClickException(f"line {lineno}: invalid point: {e}")

            try:
                writer.write_points(point)
            except EncodeError as e:
                raise click.ClickException(f"line {lineno}: {e.message}")

    logger.debug(
        "points encoded",
        module=__name__,
        points=writer.written,
        precision=str(protocol.precision),
    )
