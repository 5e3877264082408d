"""CLI commands for config management."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from cobrowse_demo.config import Config, get_config_path

console = Console()


def register(config_app: typer.Typer, get_config, save_config) -> None:
    """Register config commands on the config sub-app."""

    @config_app.command("show")
    def config_show():
        """Show current configuration. The SDK secret is masked."""
        console.print_json(json.dumps(get_config().redacted()))

    @config_app.command("init")
    def config_init(
        path: Optional[Path] = typer.Option(None, "--path", help="Where to write. Default: ~/.cobrowse/config.yaml"),
        force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
    ):
        """Write a config file with default values to fill in."""
        target = path or get_config_path()
        if target.exists() and not force:
            console.print(f"[yellow]{target} already exists (use --force to overwrite).[/yellow]")
            raise typer.Exit(1)
        save_config(Config(), target)
        console.print(f"[green]Wrote[/green] {target}")
