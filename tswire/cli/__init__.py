from __future__ import annotations

import importlib
import os
from typing import Any, Optional

import click

from tswire import settings
from tswire.environment import setup_logging, setup_sentry

plugin_folder = os.path.dirname(__file__)


class TswireCLI(click.Group):
    def list_commands(self, ctx: Any) -> list[str]:
        rv = []
        for filename in os.listdir(plugin_folder):
            if filename.endswith(".py") and filename != "__init__.py":
                # Click replaces underscores with dashes for command names
                rv.append(filename[:-3].replace("_", "-"))
        rv.sort()
        return rv

    def get_command(self, ctx: Any, name: str) -> Optional[click.Command]:
        actual_command_name = name.replace("-", "_")
        try:
            module = importlib.import_module(f"tswire.cli.{actual_command_name}")
        except ModuleNotFoundError:
            return None
        command = getattr(module, actual_command_name, None)
        return command if isinstance(command, click.Command) else None


@click.group(cls=TswireCLI)
@click.option(
    "--log-level",
    default=None,
    help="Logging level to use. Defaults to the LOG_LEVEL setting.",
)
def main(*, log_level: Optional[str]) -> None:
    """Encode points to line protocol and decode query responses."""
    setup_logging(log_level or settings.LOG_LEVEL)
    setup_sentry()
