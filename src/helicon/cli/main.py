"""Helicon CLI main entry point."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from loguru import logger
from rich.console import Console

from helicon import __version__
from helicon.cli import config
from helicon.config import load_settings
from helicon.constants import TWEET_DETAIL_QUERY_ID
from helicon.errors import HeliconError
from helicon.helicon import Helicon

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="helicon",
    help="Log in to X with a username and password and query its web API.",
)

app.add_typer(config.app, name="config")


def run_with_helicon(action: Callable[[Helicon], Awaitable[T]], force_login: bool = False) -> T:
    """Build a Helicon from the configuration and run an async action with it."""

    async def run() -> T:
        settings = load_settings()
        if force_login:
            settings.force_login = True
        async with Helicon(settings) as helicon:
            return await action(helicon)

    try:
        return asyncio.run(run())
    except HeliconError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def login(
    force: bool = typer.Option(
        False, "--force", "-f", help="Log in even if stored credentials exist."
    ),
) -> None:
    """Authenticate and store session credentials in the keyring."""

    async def action(helicon: Helicon) -> str:
        cookies = await helicon.authenticate()
        expires = cookies.auth_token.expires
        return expires.isoformat() if expires else "unknown"

    expires = run_with_helicon(action, force_login=force)
    console.print(f"[green]Authenticated.[/green] auth_token expires: {expires}")


@app.command()
def tweet(
    tweet_id: str = typer.Argument(..., help="ID of the tweet to fetch."),
    query_id: str = typer.Option(
        TWEET_DETAIL_QUERY_ID, "--query-id", "-q", help="GraphQL query ID for TweetDetail."
    ),
) -> None:
    """Fetch a tweet's detail page and print the JSON response."""

    async def action(helicon: Helicon) -> dict[str, object]:
        await helicon.authenticate()
        return await helicon.get_tweet_detail(tweet_id, query_id)

    detail = run_with_helicon(action)
    console.print_json(data=detail)


@app.command(name="refresh-bearer")
def refresh_bearer() -> None:
    """Re-scrape the anonymous bearer token, keeping the session cookies."""

    async def action(helicon: Helicon) -> str:
        await helicon.authenticate()
        return await helicon.refresh_anonymous_bearer()

    bearer = run_with_helicon(action)
    typer.echo(f"Refreshed bearer token ({len(bearer)} characters).")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Helicon - log in to X and query its web API."""
    if version:
        typer.echo(f"helicon version {__version__}")
        raise typer.Exit()
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


if __name__ == "__main__":
    app()
