"""CLI commands for tokens and PINs: token, decode, verify, fetch, pin."""

from __future__ import annotations

import asyncio
import json
from typing import Callable, Optional

import typer
from rich.console import Console

from cobrowse_demo.client import TokenServerClient
from cobrowse_demo.config import Config
from cobrowse_demo.errors import CobrowseError, InvalidArgument, MalformedToken
from cobrowse_demo.pin import DEFAULT_PIN_LENGTH, generate_pin_code, normalize_pin_code
from cobrowse_demo.token_codec import Role, decode_token, encode_token, verify_token

console = Console()


def register(app: typer.Typer, get_config: Callable[[], Config]) -> None:
    """Register token and PIN commands onto the root app."""

    @app.command()
    def token(
        role: int = typer.Option(Role.CUSTOMER.value, "--role", "-r", help="1 = customer, 2 = agent"),
        lifetime: Optional[int] = typer.Option(None, "--lifetime", "-l", min=1, help="Seconds until expiry"),
    ):
        """Mint a token locally with the configured SDK credentials."""
        sdk = get_config().sdk
        if not sdk.is_configured:
            console.print("[red]SDK_KEY and SDK_SECRET must be set (env or config file).[/red]")
            raise typer.Exit(1)
        if lifetime is None:
            lifetime = sdk.token_expiry
        typer.echo(encode_token(sdk.key, sdk.secret, role, lifetime))

    @app.command()
    def decode(token: str = typer.Argument(..., help="Token to inspect")):
        """Print a token's header and claims. The signature is not checked."""
        try:
            header, claims = decode_token(token)
        except MalformedToken as exc:
            console.print(f"[red]Malformed token:[/red] {exc.message}")
            raise typer.Exit(1)
        console.print_json(json.dumps({"header": header, "claims": claims.model_dump()}))

    @app.command()
    def verify(
        token: str = typer.Argument(..., help="Token to check"),
        secret: Optional[str] = typer.Option(
            None, "--secret", "-s", help="Signing secret. Default: configured SDK secret",
        ),
    ):
        """Check a token's signature. Exit code 0 when valid, 1 otherwise."""
        sdk = get_config().sdk
        if secret is None:
            if not sdk.is_configured:
                console.print("[red]No secret given and SDK_SECRET is not configured.[/red]")
                raise typer.Exit(1)
            secret = sdk.secret
        try:
            ok = verify_token(token, secret)
        except MalformedToken as exc:
            console.print(f"[red]Malformed token:[/red] {exc.message}")
            raise typer.Exit(1)
        if not ok:
            console.print("[red]invalid[/red] signature does not match")
            raise typer.Exit(1)
        console.print("[green]valid[/green]")

    @app.command()
    def fetch(
        url: Optional[str] = typer.Option(None, "--url", "-u", help="Token server base URL"),
        role: int = typer.Option(Role.CUSTOMER.value, "--role", "-r", help="1 = customer, 2 = agent"),
    ):
        """Fetch a token from a running token server."""
        base_url = url or f"http://localhost:{get_config().serve.port}"

        async def _fetch():
            async with TokenServerClient(base_url) as client:
                return await client.fetch_token(role)

        try:
            grant = asyncio.run(_fetch())
        except CobrowseError as exc:
            console.print(f"[red]{exc.message}[/red]")
            raise typer.Exit(1)
        console.print(f"  Role:     {grant.role}")
        console.print(f"  Expires:  {grant.expires_in}s")
        console.print(f"  Domain:   {grant.domain}")
        typer.echo(grant.token)

    @app.command()
    def pin(
        length: int = typer.Option(DEFAULT_PIN_LENGTH, "--length", "-l", help="PIN length (1-10)"),
        check: Optional[str] = typer.Option(None, "--check", help="Normalise and validate a PIN instead"),
    ):
        """Generate a BYOP PIN code, or validate one with --check."""
        try:
            value = normalize_pin_code(check) if check is not None else generate_pin_code(length)
        except InvalidArgument as exc:
            console.print(f"[red]{exc.message}[/red]")
            raise typer.Exit(1)
        typer.echo(value)
