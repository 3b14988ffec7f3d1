import os
from typing import Optional

import typer

from mbr.commands import auth, config, query
from mbr.commands.shared.context import AppContext
from mbr.logging import get_logger, setup_logging
from mbr.models import CliFlags

app = typer.Typer(
    help="[bold blue]MBR[/bold blue] - Metabase from the command line",
    rich_markup_mode="rich",
)

# Add command groups
app.add_typer(config.app, name="config")
app.add_typer(auth.app, name="auth")

# Add standalone commands
app.command("query")(query.query)


@app.callback(invoke_without_command=True)
def callback(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile to use (default: 'default')"
    ),
    config_dir: Optional[str] = typer.Option(
        None, "--config-dir", help="Directory holding config.toml"
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="Metabase API key (overrides MBR_API_KEY)"
    ),
    url: Optional[str] = typer.Option(
        None, "--url", help="Metabase server URL (overrides MBR_URL)"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
):
    """
    [bold blue]MBR[/bold blue] - Metabase from the command line

    Browse and run saved questions, and manage connection profiles.
    """
    if verbose:
        setup_logging(verbose=True, force_reconfigure=True)

    ctx.obj = AppContext(
        flags=CliFlags(
            profile=profile,
            url=url,
            api_key=api_key,
            config_dir=config_dir,
            timeout=timeout,
            verbose=verbose,
        ),
        environ=dict(os.environ),
    )

    if not ctx.invoked_subcommand:
        print("Welcome to the MBR CLI! To proceed type mbr --help")


def main():
    # Initialize logging early
    setup_logging()
    logger = get_logger("mbr.main")
    logger.info("MBR CLI started")

    try:
        app()
    except Exception as e:
        logger.error(f"Unhandled exception in main: {str(e)}")
        raise
    finally:
        logger.info("MBR CLI finished")


if __name__ == "__main__":
    main()
