"""Shared bootstrap helpers for CLI entrypoints."""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer

from cue.cli.console import error
from cue.config import ConfigError, CueConfig, load_config
from cue.soundtrack.errors import SoundtrackError
from cue.worker import WorkerComponents, open_worker

T = TypeVar("T")

ConfigOption = typer.Option(
    "--config",
    "-c",
    help="Path to configuration file",
)


def load_cli_config(config_path: Path | None) -> CueConfig:
    """Load configuration, exiting with status 1 on any problem."""
    try:
        return load_config(config_path)
    except (ConfigError, FileNotFoundError) as e:
        error(str(e))
        raise typer.Exit(1) from None


async def with_components(
    config: CueConfig,
    func: Callable[[WorkerComponents], Awaitable[T]],
) -> T:
    """Run `func` against freshly wired components and close them afterwards."""
    async with open_worker(config) as components:
        return await func(components)


def run_command(
    config_path: Path | None,
    func: Callable[[WorkerComponents], Awaitable[T]],
) -> T:
    """Load config, wire components, run `func` and map errors to exit codes."""
    config = load_cli_config(config_path)
    try:
        return asyncio.run(with_components(config, func))
    except (ConfigError, SoundtrackError) as e:
        error(str(e))
        raise typer.Exit(1) from None
