"""CLI command modules."""

from cue.cli.commands import auth, cache, database, schedules, worker

__all__ = [
    "auth",
    "cache",
    "database",
    "schedules",
    "worker",
]
