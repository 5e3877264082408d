"""cobrowse CLI - token server and helpers for the cobrowse SDK demo."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from cobrowse_demo.config import Config, load_config, save_config
from cobrowse_demo.logging_setup import setup_logging

# Bootstrap logging from config (respects COBROWSE_LOG_FORMAT / COBROWSE_LOG_LEVEL)
setup_logging(load_config())

app = typer.Typer(name="cobrowse", help="Cobrowse SDK demo: token server, tokens and PINs")
config_app = typer.Typer(help="Inspect and initialise configuration")

app.add_typer(config_app, name="config")

_config: Config | None = None


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = load_config()
    return _config


@app.callback()
def main(
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to config YAML. Default: ~/.cobrowse/config.yaml",
        envvar="COBROWSE_CONFIG",
    ),
):
    """cobrowse - Cobrowse SDK demo tooling."""
    global _config
    _config = load_config(config_file) if config_file else None


# Register commands from sub-modules
from cobrowse_demo.cli import token_cmd as _token_cmd_mod  # noqa: E402
from cobrowse_demo.cli import serve_cmd as _serve_cmd_mod  # noqa: E402
from cobrowse_demo.cli import config_cmd as _config_cmd_mod  # noqa: E402

_token_cmd_mod.register(app, _get_config)
_serve_cmd_mod.register(app, _get_config)
_config_cmd_mod.register(config_app, _get_config, save_config)

if __name__ == "__main__":
    app()
