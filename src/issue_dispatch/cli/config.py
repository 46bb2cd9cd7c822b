"""CLI: dispatch config set|show"""

import click
from rich.console import Console

from issue_dispatch.config import ENV_VARS, load_config_file, save_config_file

console = Console()

SECRET_FIELDS = {"devin_api_key", "github_token"}


@click.group()
def config():
    """Persisted settings (override environment variables)."""


@config.command("set")
@click.argument("field", type=click.Choice(sorted(ENV_VARS)))
@click.argument("value")
def config_set(field, value):
    """Store a setting."""
    cfg = load_config_file()
    cfg[field] = value
    save_config_file(cfg)
    console.print(f"[green]Saved {field}.[/green]")


@config.command("show")
def config_show():
    """Print stored settings (secrets masked)."""
    cfg = load_config_file()
    if not cfg:
        console.print("[dim]No stored settings.[/dim]")
        return
    for field, value in sorted(cfg.items()):
        shown = "****" if field in SECRET_FIELDS and value else value
        console.print(f"{field} = {shown}")
