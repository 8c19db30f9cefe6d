"""Main CLI application."""

import typer

from cue.cli.commands import auth, cache, database, schedules, worker

app = typer.Typer(
    name="cue",
    help="Cue - scheduled music assignment for Soundtrack zones",
    no_args_is_help=True,
)

worker.register(app)
database.register(app)
auth.register(app)
cache.register(app)
schedules.register(app)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
