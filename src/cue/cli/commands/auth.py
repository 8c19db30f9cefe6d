"""Authentication management commands (user mode only)."""

from pathlib import Path
from typing import Annotated

import typer

from cue.auth import TokenManager
from cue.cli.console import console, dim, error, format_countdown, success, warning
from cue.cli.runtime import ConfigOption, run_command
from cue.store import AuthToken
from cue.worker import WorkerComponents


def _require_tokens(components: WorkerComponents) -> TokenManager:
    if components.tokens is None:
        error(
            "Authentication commands need [soundtrack].mode = \"user\"; "
            "token mode uses the shared API token."
        )
        raise typer.Exit(1)
    return components.tokens


def register(app: typer.Typer) -> None:
    """Register the auth command group."""

    auth_app = typer.Typer(name="auth", help="Manage the Soundtrack user login")

    @auth_app.command()
    def login(
        email: Annotated[
            str,
            typer.Option("--email", "-e", prompt=True, help="Account email"),
        ],
        password: Annotated[
            str,
            typer.Option(
                "--password",
                "-p",
                prompt=True,
                hide_input=True,
                help="Account password",
            ),
        ],
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """Log in with a Soundtrack user account and store the token."""

        async def do_login(components: WorkerComponents) -> AuthToken:
            return await _require_tokens(components).login(email, password)

        token = run_command(config, do_login)
        success(f"Logged in, token expires {format_countdown(token.expires_at)}")

    @auth_app.command()
    def logout(
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """Remove the stored token."""

        async def do_logout(components: WorkerComponents) -> bool:
            return await _require_tokens(components).logout()

        if run_command(config, do_logout):
            success("Logged out")
        else:
            console.print(dim("Not logged in."))

    @auth_app.command()
    def status(
        config: Annotated[Path | None, ConfigOption] = None,
    ) -> None:
        """Show whether a user token is stored and when it expires."""

        async def do_status(components: WorkerComponents) -> AuthToken | None:
            return await _require_tokens(components).current()

        token = run_command(config, do_status)
        if token is None:
            warning("Not logged in.")
            console.print("Run [bold]cue auth login[/bold] to authenticate.")
            return

        console.print(f"Token expires {format_countdown(token.expires_at)}")
        console.print(
            f"Refresh token: {'present' if token.refresh_token else dim('missing')}"
        )

    app.add_typer(auth_app, name="auth")
