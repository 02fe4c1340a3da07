"""hmacauth CLI - Signing, verification and API calls."""

import asyncio
import json
import sys
from collections.abc import Callable, Coroutine
from dataclasses import replace
from typing import Any, ParamSpec, TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hmacauth.client.api_client import ApiClient, ApiClientError
from hmacauth.common.logging import setup_logging
from hmacauth.common.settings import Settings, get_settings
from hmacauth.core.config import SigningConfig
from hmacauth.core.digest import generate_secret
from hmacauth.core.errors import ConfigurationError, InternalError
from hmacauth.core.signer import Signer
from hmacauth.core.verifier import Verifier

console = Console()

P = ParamSpec("P")
R = TypeVar("R")


def async_command(f: Callable[P, Coroutine[Any, Any, R]]) -> Callable[P, R]:
    """Decorator to run async commands."""

    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def _parse_message(raw: str, as_json: bool) -> Any:
    if not as_json:
        return raw
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        console.print(f"[red]Invalid JSON message: {escape(str(e))}[/red]")
        sys.exit(1)


def _signing_config(ctx: click.Context) -> SigningConfig:
    settings: Settings = ctx.obj["settings"]
    secret = ctx.obj.get("secret")
    config = SigningConfig.from_settings(settings)
    if secret:
        config = replace(config, secret=secret)
    return config


def _signer(ctx: click.Context) -> Signer:
    try:
        return Signer(_signing_config(ctx))
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _verifier(ctx: click.Context) -> Verifier:
    try:
        return Verifier(_signing_config(ctx))
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


@click.group()
@click.option(
    "--secret",
    envvar="HMAC_SECRET",
    default=None,
    help="Shared HMAC secret (defaults to HMAC_SECRET)",
)
@click.option("--log-level", default=None, help="Log level")
@click.pass_context
def cli(ctx: click.Context, secret: str | None, log_level: str | None) -> None:
    """hmacauth CLI - Sign and verify HMAC messages and requests."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level, settings.log_json)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["secret"] = secret


@cli.command("generate-secret")
@click.option("--length", "-l", default=32, show_default=True, help="Secret length in bytes")
def generate_secret_cmd(length: int) -> None:
    """Generate a random hex secret."""
    console.print(generate_secret(length), soft_wrap=True, markup=False, emoji=False)


@cli.command("sign")
@click.argument("message")
@click.option("--json", "as_json", is_flag=True, help="Treat MESSAGE as a JSON value")
@click.pass_context
def sign_cmd(ctx: click.Context, message: str, as_json: bool) -> None:
    """Sign a message."""
    signer = _signer(ctx)
    try:
        digest = signer.sign_message(_parse_message(message, as_json))
    except InternalError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    console.print(digest, soft_wrap=True, markup=False, emoji=False)


@cli.command("verify")
@click.argument("message")
@click.argument("digest")
@click.option("--json", "as_json", is_flag=True, help="Treat MESSAGE as a JSON value")
@click.pass_context
def verify_cmd(ctx: click.Context, message: str, digest: str, as_json: bool) -> None:
    """Verify a message digest."""
    verifier = _verifier(ctx)
    if verifier.verify_message(_parse_message(message, as_json), digest):
        console.print("[green]✓ HMAC is valid[/green]")
    else:
        console.print("[red]✗ HMAC is invalid[/red]")
        sys.exit(1)


@cli.command("token")
@click.argument("message")
@click.option("--json", "as_json", is_flag=True, help="Treat MESSAGE as a JSON value")
@click.pass_context
def token_cmd(ctx: click.Context, message: str, as_json: bool) -> None:
    """Create a timestamp token."""
    signer = _signer(ctx)
    try:
        token = signer.sign_with_timestamp(_parse_message(message, as_json))
    except InternalError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    console.print(token.full_token, soft_wrap=True, markup=False, emoji=False)


@cli.command("verify-token")
@click.argument("token")
@click.pass_context
def verify_token_cmd(ctx: click.Context, token: str) -> None:
    """Verify a timestamp token."""
    verifier = _verifier(ctx)
    result = verifier.verify_timestamp_token(token)

    table = Table(title="Token Verification")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Valid", "[green]yes[/green]" if result.is_valid else "[red]no[/red]")
    table.add_row("Reason", result.reason)
    if result.age is not None:
        table.add_row("Age (ms)", str(result.age))
    if result.max_age is not None:
        table.add_row("Max age (ms)", str(result.max_age))
    if result.is_valid:
        table.add_row("Data", escape(json.dumps(result.data)))
    console.print(table)

    if not result.is_valid:
        sys.exit(1)


@cli.command("sign-request")
@click.option("--method", "-X", default="GET", show_default=True, help="HTTP method")
@click.option("--path", "-p", required=True, help="Request path")
@click.option("--body", "-d", default=None, help="JSON request body")
@click.pass_context
def sign_request_cmd(ctx: click.Context, method: str, path: str, body: str | None) -> None:
    """Print authentication headers for a request."""
    signer = _signer(ctx)
    payload = _parse_message(body, True) if body else None
    try:
        headers = signer.sign_request(method, path, payload)
    except InternalError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    for name, value in headers.items():
        console.print(f"{name}: {value}", soft_wrap=True, markup=False, emoji=False)


@cli.command("call")
@click.option("--method", "-X", type=click.Choice(["GET", "POST"]), default="GET", show_default=True)
@click.option("--base-url", default=None, help="API base URL")
@click.option("--data", "-d", default=None, help="JSON request body (POST)")
@click.argument("endpoint")
@click.pass_context
@async_command
async def call_cmd(
    ctx: click.Context,
    method: str,
    base_url: str | None,
    data: str | None,
    endpoint: str,
) -> None:
    """Send a signed request to the API."""
    signer = _signer(ctx)
    payload = _parse_message(data, True) if data else {}

    async with ApiClient(signer, settings=ctx.obj["settings"], base_url=base_url) as client:
        try:
            if method == "POST":
                result = await client.post(endpoint, payload)
            else:
                result = await client.get(endpoint)
        except ApiClientError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)

    console.print_json(json.dumps(result))


@cli.command("serve")
def serve_cmd() -> None:
    """Run the API server."""
    from hmacauth.server.main import main as server_main

    server_main()


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
