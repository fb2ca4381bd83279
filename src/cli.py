"""Click CLI for running the webhook receiver and inspecting its audit log."""

from __future__ import annotations

import sys
from pathlib import Path

import click
import uvicorn
from dotenv import load_dotenv

from src.audit.logger import validate_audit_chain
from src.config import ConfigError, Settings, configure_logging
from src.server.app import create_app
from src.webhook.signature import compute_signature


@click.group()
def cli() -> None:
    """LINE account-link bot."""


@cli.command()
@click.option("--env-file", default=None, help="Path to a .env file to load.")
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind.")
@click.option("--port", type=int, default=None, help="Port to listen on (overrides PORT).")
@click.option("--log-level", default=None, help="Logging level (overrides LOG_LEVEL).")
def serve(env_file: str | None, host: str, port: int | None, log_level: str | None) -> None:
    """Run the webhook receiver."""
    load_dotenv(env_file)
    configure_logging(log_level)
    try:
        settings = Settings.from_env(env_file)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    listen_port = port or settings.port
    click.echo(f"http://localhost:{listen_port}/")
    uvicorn.run(create_app(settings), host=host, port=listen_port, log_config=None)


@cli.command()
@click.argument("body_file", type=click.Path(exists=True, dir_okay=False, allow_dash=True))
@click.option("--secret", envvar="LINE_CHANNEL_SECRET", required=True, help="Channel secret.")
def sign(body_file: str, secret: str) -> None:
    """Print the x-line-signature for a request body."""
    if body_file == "-":
        body = sys.stdin.buffer.read()
    else:
        body = Path(body_file).read_bytes()
    click.echo(compute_signature(secret, body))


@cli.group("audit")
def audit_group() -> None:
    """Inspect the account-link audit log."""


@audit_group.command("verify")
@click.argument("log_path", type=click.Path(dir_okay=False))
def audit_verify(log_path: str) -> None:
    """Validate the audit log hash chain."""
    result = validate_audit_chain(Path(log_path))
    if result.valid:
        click.echo("Audit chain intact.")
        return
    click.echo(f"Audit chain broken at line {result.broken_at_line}.", err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
