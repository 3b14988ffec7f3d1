"""
Session authentication commands: login, logout, status.
"""

from typing import Optional

import typer

from mbr.constants import ENV_PASSWORD, ENV_USERNAME
from mbr.commands.shared.context import cli_errors, get_app_context
from mbr.logging import get_logger
from mbr.utils.console import create_table, console, info, success, warning

app = typer.Typer(help="Log in, log out and inspect authentication")


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


@app.command("login")
def login(
    ctx: typer.Context,
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Metabase email"),
    password: Optional[str] = typer.Option(
        None, "--password", help="Password (prompted when omitted)"
    ),
):
    """Open a session and store its token in the system keyring"""
    logger = get_logger("mbr.commands.auth")
    app_ctx = get_app_context(ctx)
    with cli_errors("mbr.commands.auth"):
        config = app_ctx.effective_config()
        profile = app_ctx.profile()

        username = _first(username, app_ctx.environ.get(ENV_USERNAME), profile.email)
        if not username:
            username = typer.prompt("Username")
        password = _first(password, app_ctx.environ.get(ENV_PASSWORD))
        if not password:
            password = typer.prompt("Password", hide_input=True)

        auth = app_ctx.auth_state(config)
        logger.info(f"Logging in to {config.url} as {username}")
        with console.status(f"Logging in to {config.url}..."):
            auth.login(username, password)

        success(f"Logged in as {username} (profile '{config.profile}')")
        if config.api_key:
            warning("An API key is also configured and takes precedence over the session")


@app.command("logout")
def logout(ctx: typer.Context):
    """End the session and remove the stored token"""
    app_ctx = get_app_context(ctx)
    with cli_errors("mbr.commands.auth"):
        auth = app_ctx.auth_state()
        if auth.logout():
            success(f"Logged out of profile '{auth.profile}'")
        else:
            info(f"No stored session for profile '{auth.profile}'")


@app.command("status")
def status(ctx: typer.Context):
    """Show how requests for the active profile will authenticate"""
    app_ctx = get_app_context(ctx)
    with cli_errors("mbr.commands.auth"):
        config = app_ctx.effective_config()
        snapshot = app_ctx.auth_state(config).status()

        table = create_table("Authentication", ["Setting", "Value"])
        table.add_row("Profile", snapshot.profile)
        table.add_row("URL", config.url)
        table.add_row("Mode", snapshot.mode)
        table.add_row("Stored session", "yes" if snapshot.has_session else "no")
        console.print(table)

        if snapshot.mode == "none":
            warning("No credential configured. Set MBR_API_KEY or run 'mbr auth login'")
