"""Database management commands."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from cue.cli.console import console, success
from cue.cli.runtime import ConfigOption, load_cli_config
from cue.worker import create_database


def register(app: typer.Typer) -> None:
    """Register the db command group."""
    db_app = typer.Typer(help="Database management commands")

    @db_app.command("init")
    def db_init(
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """Create the database tables if they do not exist."""
        cue_config = load_cli_config(config)
        database = create_database(cue_config)

        async def init() -> None:
            await database.connect()
            try:
                await database.create_all()
            finally:
                await database.disconnect()

        asyncio.run(init())
        console.print(f"Database: {database.url}")
        success("Tables created")

    app.add_typer(db_app, name="db")
