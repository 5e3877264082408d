"""CLI command: serve."""

from __future__ import annotations

from typing import Callable, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from cobrowse_demo.config import PLACEHOLDER_SDK_KEY, PLACEHOLDER_SDK_SECRET, Config

console = Console()


def _state(value: str, placeholder: str) -> str:
    if not value or value == placeholder:
        return "[yellow](not set)[/yellow]"
    return "configured"


def _banner(cfg: Config) -> Panel:
    key_state = _state(cfg.sdk.key, PLACEHOLDER_SDK_KEY)
    secret_state = _state(cfg.sdk.secret, PLACEHOLDER_SDK_SECRET)
    body = (
        f"Server running on [cyan]{cfg.serve.host}:{cfg.serve.port}[/cyan]\n\n"
        "Pages:\n"
        "  /customer  - Customer page\n"
        "  /agent     - Agent viewer\n\n"
        "API:\n"
        "  /token     - Get SDK token\n"
        "  /health    - Health check\n\n"
        "Environment:\n"
        f"  SDK_KEY:    {key_state}\n"
        f"  SDK_SECRET: {secret_state}"
    )
    return Panel(body, title="Cobrowse SDK Demo Server", expand=False)


def register(app: typer.Typer, get_config: Callable[[], Config]) -> None:
    """Register the serve command onto the root app."""

    @app.command()
    def serve(
        port: Optional[int] = typer.Option(None, "--port", "-p"),
        host: Optional[str] = typer.Option(None, "--host"),
    ):
        """Start the token and page server."""
        from cobrowse_demo.server import run_server

        cfg = get_config()
        if port:
            cfg.serve.port = port
        if host:
            cfg.serve.host = host

        console.print(_banner(cfg))
        run_server(cfg)
