from __future__ import annotations

import sys
from typing import IO, Optional

import click
import rapidjson
import structlog

from tswire.cursor import new_cursor
from tswire.errors import EndOfStream, ResultError, WireError
from tswire.precision import Precision

logger = structlog.get_logger()


@click.command()
@click.option(
    "--format",
    "format_",
    default="json",
    help="Format of the response, usually its Content-Type.",
)
@click.option(
    "--epoch",
    type=click.Choice([precision.value for precision in Precision]),
    default=None,
    help="Epoch precision the query was issued with, if any.",
)
@click.argument("input", type=click.File("rb"), default="-")
def decode(*, format_: str, epoch: Optional[str], input: IO[bytes]) -> None:
    """
    Decode a (possibly chunked) query response from INPUT and print every
    result, series and row as JSON lines.
    """
    failed = 0
    results = 0

    try:
        cursor = new_cursor(input, format_, epoch=epoch)
    except WireError as e:
        raise click.ClickException(e.message)

    with cursor:
        while True:
            try:
                result = cursor.next_result_set()
            except ResultError as e:
                failed += 1
                click.echo(f"statement failed: {e.error}", err=True)
                continue
            except EndOfStream:
                break
            except WireError as e:
                raise click.ClickException(e.message)

            results += 1
            _echo(
                {
                    "result": results,
                    "columns": list(result.columns),
                    "messages": [
                        {"level": m.level, "text": m.text} for m in result.messages
                    ],
                }
            )
            try:
                for series in result:
                    _echo(
                        {
                            "series": series.name,
                            "tags": {tag.key: tag.value for tag in series.tags},
                        }
                    )
                    for row in series:
                        _echo({"time": row.time(), "values": row.values})
            except ResultError as e:
                failed += 1
                click.echo(f"statement failed: {e.error}", err=True)
            except WireError as e:
                raise click.ClickException(e.message)

    logger.debug("response decoded", module=__name__, results=results, failed=failed)
    if failed:
        sys.exit(1)


def _echo(payload: object) -> None:
    click.echo(rapidjson.dumps(payload))
