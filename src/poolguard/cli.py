"""
CLI: ``poolguard`` — probe a database the way application startup would.

``poolguard check`` builds a lifecycle around a PostgreSQL pool, starts it
(pinging with the configured fixed-delay retry), reports the outcome and
stops it again.

Exit codes: 0 reachable, 1 not reachable, 2 bad configuration.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from poolguard import __version__
from poolguard.core.config import get_settings
from poolguard.core.errors import ConfigError, ConstructionError, LifecycleError
from poolguard.core.logging import configure_logging, get_logger
from poolguard.execution.context import HookContext
from poolguard.execution.retry import RetryPolicy
from poolguard.lifecycle.hooks import Lifecycle
from poolguard.resources.managed import ManagedResource
from poolguard.resources.postgres import PostgresPool, new_postgres_managed, redact_dsn

app = typer.Typer(
    name="poolguard",
    help="poolguard — lifecycle-gated database pool startup.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"poolguard {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """poolguard CLI — check database reachability, show configuration."""


async def _probe(
    lifecycle: Lifecycle, managed: ManagedResource[PostgresPool], timeout: float | None
) -> dict[str, Any]:
    ctx = HookContext.with_timeout(timeout) if timeout is not None else HookContext.background()
    result: dict[str, Any] = {"resource": managed.name}
    try:
        await lifecycle.start(ctx)
    except LifecycleError as e:
        result.update(reachable=False, state=managed.state.value, error=str(e.cause or e))
        return result

    result.update(reachable=True, state=managed.state.value, elapsed_s=round(ctx.elapsed, 3))
    await lifecycle.stop(HookContext.background())
    return result


def _render(result: dict[str, Any], as_json: bool) -> None:
    if as_json:
        console.print_json(json.dumps(result, default=str))
        return
    table = Table(title="Database check")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in result.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command("check")
def check(
    dsn: str | None = typer.Option(None, "--dsn", "-d", help="Database URL (default: POOLGUARD_DATABASE_URL)."),
    attempts: int | None = typer.Option(None, "--attempts", "-n", min=0, help="Probe attempts."),
    delay: float | None = typer.Option(None, "--delay", min=0.0, help="Seconds between attempts."),
    timeout: float | None = typer.Option(None, "--timeout", min=0.0, help="Overall start deadline in seconds."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Start a pool, report whether the database answered, stop it."""
    settings = get_settings()
    # stdout carries the report only
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
        stream=sys.stderr,
    )
    log = get_logger("poolguard.cli")

    policy = RetryPolicy(
        attempts=settings.retry_attempts if attempts is None else attempts,
        delay=settings.retry_delay_seconds if delay is None else delay,
    )
    target = dsn or settings.database_url

    lifecycle = Lifecycle(logger=log)
    try:
        managed = new_postgres_managed(
            lifecycle,
            target,
            logger=log,
            policy=policy,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            ping_timeout=settings.ping_timeout_seconds,
        )
    except (ConfigError, ConstructionError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from e

    result = asyncio.run(
        _probe(lifecycle, managed, timeout if timeout is not None else settings.start_timeout_seconds)
    )
    result["dsn"] = redact_dsn(target)
    _render(result, json_out)
    if not result["reachable"]:
        raise typer.Exit(1)


@app.command("config")
def show_config(json_out: bool = typer.Option(False, "--json")) -> None:
    """Show the effective settings (password redacted)."""
    settings = get_settings()
    data = settings.model_dump()
    data["database_url"] = settings.redacted_database_url()
    _render(data, json_out)


if __name__ == "__main__":
    app()
