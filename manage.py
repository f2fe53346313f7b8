#!/usr/bin/env python3
"""amctrack management CLI."""

import asyncio
import os
import subprocess
import sys
from datetime import datetime

import click


def _run(args: list[str], *, replace: bool = False) -> None:
    click.echo(
        f"  {click.style('>', dim=True)} {click.style(' '.join(args), dim=True)}\n"
    )
    if replace:
        os.execvp(args[0], args)
    result = subprocess.run(args)
    if result.returncode != 0:
        click.echo(
            f"  {click.style('✗', fg='red')} exited with code {result.returncode}"
        )
        sys.exit(result.returncode)


def _ok(text: str) -> None:
    click.echo(f"  {click.style('✓', fg='green')} {text}")


def _fail(text: str) -> None:
    click.echo(f"  {click.style('✗', fg='red')} {text}")


def _header(text: str) -> None:
    click.echo(f"\n  {click.style(text, fg='cyan', bold=True)}\n")


@click.group()
def cli() -> None:
    """amctrack management CLI."""


@cli.command()
@click.argument("uvicorn_args", nargs=-1)
def app(uvicorn_args: tuple[str, ...]) -> None:
    """Start uvicorn with --reload."""
    _header("Starting amctrack")
    _run(
        ["uv", "run", "uvicorn", "amctrack.app:app", "--reload", *uvicorn_args],
        replace=True,
    )


@cli.group()
def db() -> None:
    """Database management commands."""


@db.command()
def up() -> None:
    """Start PostgreSQL (docker compose up)."""
    _header("Starting PostgreSQL")
    _run(["docker", "compose", "up", "-d"])
    _ok("PostgreSQL is running")


@db.command()
def down() -> None:
    """Stop PostgreSQL (docker compose down)."""
    _header("Stopping PostgreSQL")
    _run(["docker", "compose", "down"])
    _ok("PostgreSQL stopped")


@db.command()
def migrate() -> None:
    """Run alembic upgrade head."""
    _header("Running migrations")
    _run(["uv", "run", "alembic", "upgrade", "head"])
    _ok("Migrations applied")


@db.command()
@click.argument("message", default="auto")
def revision(message: str) -> None:
    """Generate alembic migration."""
    _header(f"Generating migration: {message}")
    _run(["uv", "run", "alembic", "revision", "--autogenerate", "-m", message])
    _ok("Migration generated")


@cli.command()
@click.option(
    "--date",
    "as_of",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Run the scan as if today were this date.",
)
def remind(as_of: datetime | None) -> None:
    """Run the AMC reminder scan once, now."""
    from amctrack.base.clock import FixedClock, system_clock
    from amctrack.scheduler import run_amc_reminder_scan

    clock = FixedClock(as_of.date()) if as_of else system_clock
    _header(f"Scanning AMC end dates from {clock.today().isoformat()}")
    report = asyncio.run(run_amc_reminder_scan(clock=clock))
    _ok(f"{len(report.sent)} reminders sent")
    if report.failed_dispatches:
        _fail(f"{len(report.failed_dispatches)} reminders failed")
    if report.failed_horizons:
        horizons = ", ".join(str(h) for h in report.failed_horizons)
        _fail(f"queries failed for horizons: {horizons}")
        sys.exit(1)


@cli.command()
@click.argument("pytest_args", nargs=-1)
def test(pytest_args: tuple[str, ...]) -> None:
    """Run pytest."""
    _header("Running tests")
    _run(["uv", "run", "pytest", "tests/", "-v", *pytest_args], replace=True)


@cli.command()
def lint() -> None:
    """Run mypy."""
    _header("Running mypy")
    _run(["uv", "run", "mypy", "."])
    _ok("Type check passed")


if __name__ == "__main__":
    cli()
