"""Config commands for Helicon CLI."""

import typer

from helicon.config import get_config_dir, get_config_path, load_settings
from helicon.errors import ConfigError

app = typer.Typer(
    name="config",
    help="Manage Helicon configuration.",
)


@app.command()
def show() -> None:
    """Show current configuration."""
    typer.echo(f"config_dir: {get_config_dir()}")
    typer.echo(f"config_file: {get_config_path()}")
    try:
        settings = load_settings()
    except ConfigError as e:
        typer.echo(f"settings: incomplete ({e})")
        return
    typer.echo(f"username: {settings.username}")
    typer.echo(f"user_agent: {settings.user_agent}")
    typer.echo(f"force_login: {str(settings.force_login).lower()}")
