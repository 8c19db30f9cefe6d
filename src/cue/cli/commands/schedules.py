"""Read-only listings: schedules, runs, zones and music library."""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from cue.cli.console import console, dim, format_countdown, format_time, warning
from cue.cli.runtime import ConfigOption, run_command
from cue.soundtrack import AccountLibrary, Zone
from cue.store import ActionStatus, Run, Schedule
from cue.worker import WorkerComponents


def register(app: typer.Typer) -> None:
    """Register the listing commands."""

    @app.command()
    def schedules(
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """List schedules and when they next fire."""

        async def fetch(components: WorkerComponents) -> list[Schedule]:
            return await components.store.list_schedules()

        _print_schedules(run_command(config, fetch))

    @app.command()
    def runs(
        limit: Annotated[
            int,
            typer.Option("--limit", "-n", min=1, help="Number of runs to show"),
        ] = 10,
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """List recent runs and the outcome of their actions."""

        async def fetch(components: WorkerComponents) -> list[Run]:
            return await components.store.list_runs(limit=limit)

        _print_runs(run_command(config, fetch))

    @app.command()
    def zones(
        skip_cache: Annotated[
            bool,
            typer.Option("--skip-cache", help="Fetch live instead of from cache"),
        ] = False,
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """List sound zones across all accounts."""

        async def fetch(components: WorkerComponents) -> list[Zone]:
            return await components.api.get_zones(skip_cache=skip_cache)

        _print_zones(run_command(config, fetch))

    @app.command()
    def library(
        account_id: Annotated[str, typer.Argument(help="Account to list music for")],
        skip_cache: Annotated[
            bool,
            typer.Option("--skip-cache", help="Fetch live instead of from cache"),
        ] = False,
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """List the playlists and schedules an account can assign."""

        async def fetch(components: WorkerComponents) -> AccountLibrary:
            return await components.api.get_library(account_id, skip_cache=skip_cache)

        _print_library(run_command(config, fetch))


def _print_schedules(items: list[Schedule]) -> None:
    if not items:
        warning("No schedules found")
        return

    table = Table(show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Assign")
    table.add_column("Repeat")
    table.add_column("Targets")
    table.add_column("Next Run")

    for schedule in items:
        if schedule.is_recurring:
            repeat = f"every {schedule.repeat} {schedule.repeat_unit}"
        else:
            repeat = "once"
        enabled_targets = sum(1 for t in schedule.targets if t.enabled)
        next_run = (
            format_countdown(schedule.next_run)
            if schedule.enabled
            else dim("disabled")
        )
        table.add_row(
            str(schedule.id),
            schedule.name,
            schedule.assign or dim("-"),
            repeat,
            f"{enabled_targets}/{len(schedule.targets)}",
            next_run,
        )

    console.print(table)
    console.print(f"\n{dim(f'Total: {len(items)} schedule(s)')}")


def _print_runs(items: list[Run]) -> None:
    if not items:
        warning("No runs recorded")
        return

    table = Table(show_header=True)
    table.add_column("Run", style="dim")
    table.add_column("Started")
    table.add_column("Actions")
    table.add_column("Errors")

    for run in items:
        errors = sum(1 for a in run.actions if a.status == ActionStatus.ERROR)
        table.add_row(
            str(run.id),
            format_time(run.created_at),
            str(len(run.actions)),
            f"[red]{errors}[/red]" if errors else "0",
        )

    console.print(table)


def _print_zones(items: list[Zone]) -> None:
    if not items:
        warning("No zones found")
        return

    table = Table(show_header=True)
    table.add_column("Zone ID", style="dim")
    table.add_column("Name")
    table.add_column("Location")
    table.add_column("Account", style="dim")

    for zone in items:
        table.add_row(
            zone.id,
            zone.name,
            zone.location.name if zone.location else dim("-"),
            zone.account_id,
        )

    console.print(table)


def _print_library(library: AccountLibrary) -> None:
    items = [*library.playlists, *library.schedules]
    if not items:
        warning("No music found")
        return

    table = Table(show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Updated", style="dim")

    for item in items:
        table.add_row(item.id, item.kind, item.name, item.updated_at or dim("-"))

    console.print(table)
