"""Response cache commands."""

from pathlib import Path
from typing import Annotated

import typer

from cue.cli.console import console, success
from cue.cli.runtime import ConfigOption, run_command
from cue.worker import WorkerComponents


def register(app: typer.Typer) -> None:
    """Register the cache command group."""
    cache_app = typer.Typer(help="Inspect or clear cached API responses")

    @cache_app.command("count")
    def cache_count(
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """Show the number of cached responses."""

        async def count(components: WorkerComponents) -> int:
            return await components.cache.count()

        console.print(f"{run_command(config, count)} cached response(s)")

    @cache_app.command("clear")
    def cache_clear(
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """Drop every cached response."""

        async def clear(components: WorkerComponents) -> int:
            removed = await components.cache.count()
            await components.cache.clear()
            return removed

        success(f"Cleared {run_command(config, clear)} cached response(s)")

    app.add_typer(cache_app, name="cache")
