"""Worker commands: run the poller continuously or for a single tick."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from cue.cli.console import console, dim, error, success, warning
from cue.cli.runtime import ConfigOption, load_cli_config, run_command
from cue.config import ConfigError, CueConfig
from cue.scheduling import TickResult, validate_interval
from cue.soundtrack.errors import SoundtrackError
from cue.store import ActionStatus
from cue.worker import WorkerComponents, open_worker


def register(app: typer.Typer) -> None:
    """Register the worker and run-once commands."""

    @app.command()
    def worker(
        config: Annotated[Path | None, ConfigOption] = None,
        interval: Annotated[
            int | None,
            typer.Option(
                "--interval",
                "-i",
                help="Seconds between polls (overrides worker.interval)",
            ),
        ] = None,
        verbose: Annotated[
            bool,
            typer.Option("--verbose", "-v", help="Log at DEBUG level"),
        ] = False,
    ) -> None:
        """Run the schedule poller until interrupted.

        Examples:
            cue worker                  # Poll at the configured interval
            cue worker --interval 30    # Poll every 30 seconds
        """
        from cue.logging import configure_logging

        cue_config = load_cli_config(config)
        if interval is not None:
            try:
                validate_interval(interval)
            except ConfigError as e:
                error(str(e))
                raise typer.Exit(1) from None
            cue_config = cue_config.model_copy(
                update={
                    "worker": cue_config.worker.model_copy(
                        update={"interval": interval}
                    )
                }
            )

        configure_logging(
            level="DEBUG" if verbose else None, use_rich=True, log_to_file=True
        )
        try:
            asyncio.run(_run_worker(cue_config))
        except (ConfigError, SoundtrackError) as e:
            error(str(e))
            raise typer.Exit(1) from None

    @app.command("run-once")
    def run_once(
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """Execute a single poll tick and print what it did."""

        async def tick(components: WorkerComponents) -> TickResult:
            return await components.poller.tick()

        result = run_command(config, tick)
        _print_tick(result)


async def _run_worker(config: CueConfig) -> None:
    import signal

    async with open_worker(config) as components:
        poller = components.poller
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop.set)

        await poller.start()
        console.print(
            f"[bold]Worker started[/bold] {dim(f'(every {poller.interval}s)')}"
        )
        try:
            await stop.wait()
        finally:
            console.print(dim("Stopping worker..."))
            await poller.stop()


def _print_tick(result: TickResult) -> None:
    if result.due == 0:
        warning(f"Run {result.run_id}: no schedules due")
        return

    failed = [a for a in result.actions if a.status == ActionStatus.ERROR]
    message = (
        f"Run {result.run_id}: {result.due} schedule(s) due, "
        f"{len(result.actions)} action(s), {len(failed)} failed"
    )
    if failed or result.failed_schedule_ids:
        warning(message)
    else:
        success(message)
    for action in failed:
        console.print(
            f"  schedule {action.schedule_id} zone {action.zone_id}: "
            f"[red]{action.error}[/red]"
        )
