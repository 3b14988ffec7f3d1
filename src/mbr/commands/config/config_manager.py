"""
Configuration management commands.

This module contains the typer commands behind 'mbr config'.
"""

from typing import Optional

import typer

from mbr.errors import ErrorKind, MbrError
from mbr.logging import get_logger, log_application_event
from mbr.models import Profile
from mbr.commands.shared.context import cli_errors, get_app_context
from mbr.utils.console import info, success
from .settings import describe_sources, display_config
from .validation import validate_email, validate_timeout, validate_url

app = typer.Typer(help="Manage connection profiles")


@app.command("show")
def show(ctx: typer.Context):
    """Show the active profile and the settings this run would use"""
    app_ctx = get_app_context(ctx)
    with cli_errors("mbr.commands.config"):
        profiles = app_ctx.store.load_profiles()
        name = app_ctx.profile_name
        stored = name in profiles
        profile = app_ctx.profile()
        config = app_ctx.effective_config()
        sources = describe_sources(
            app_ctx.flags, app_ctx.environ, profile if stored else Profile(name=name, url="")
        )
        display_config(profile, config, stored, str(app_ctx.store.config_file), sources)

        others = sorted(p for p in profiles if p != name)
        if others:
            info(f"Other profiles: {', '.join(others)}")


@app.command("set")
def set_profile(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", help="Metabase server URL"),
    email: Optional[str] = typer.Option(None, "--email", help="Login email for session auth"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds"
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Use this profile when --profile is not given"
    ),
):
    """Create or update the active profile (the global --profile selects it)"""
    logger = get_logger("mbr.commands.config")
    app_ctx = get_app_context(ctx)
    with cli_errors("mbr.commands.config"):
        if url is None and email is None and timeout is None and not make_default:
            raise MbrError(
                ErrorKind.INVALID_VALUE,
                "Nothing to set",
                hint="Pass at least one of --url, --email, --timeout or --default",
            )

        # Validate everything before writing anything
        new_url = validate_url(url) if url is not None else None
        new_email = validate_email(email) if email is not None else None
        new_timeout = validate_timeout(timeout)

        name = app_ctx.profile_name
        profile = app_ctx.profile()
        if new_url is not None:
            profile.url = new_url
        if new_email is not None:
            profile.email = new_email
        if new_timeout is not None:
            profile.timeout = new_timeout

        app_ctx.store.save_profile(profile)
        if make_default:
            app_ctx.store.set_default_profile(name)

        logger.info(f"Saved profile '{name}'")
        log_application_event("profile saved", details={"profile": name, "url": profile.url})
        success(f"Profile '{name}' saved to {app_ctx.store.config_file}")


@app.command("validate")
def validate(ctx: typer.Context):
    """Check the configured URL and credential against the server"""
    app_ctx = get_app_context(ctx)
    with cli_errors("mbr.commands.config"):
        config = app_ctx.effective_config()
        auth = app_ctx.auth_state(config)
        credential = auth.resolve_credential()
        info(f"Validating {credential.kind.value if credential else 'credential'} "
             f"against {config.url} ...")
        user = auth.validate()

        who = user.get("email") or user.get("common_name") or "unknown user"
        success(f"Authenticated as {who} (profile '{config.profile}')")
