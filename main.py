"""Book lending CLI entry point."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from lending.app import run_server
from lending.config import DEFAULT_CONFIG_PATH, LendingConfig, load_config, write_default_config
from lending.logging_config import setup_logging
from lending.service import LendingService
from lending.store import DocumentStore


__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="Book lending service CLI")
logger = logging.getLogger("lending")


def _ensure_config() -> LendingConfig:
    try:
        return load_config()
    except FileNotFoundError:
        typer.echo("[ERROR] config.ini not found. Run: booklend init")
        raise typer.Exit(code=1)


def _service(config: LendingConfig) -> LendingService:
    return LendingService(
        DocumentStore(config.store_path),
        secret=config.auth.secret,
        token_ttl_seconds=config.auth.token_ttl_seconds,
    )


@app.command()
def init(
    name: str = typer.Option("Book Lending System", "--name", help="Library name"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config.ini"),
) -> None:
    """Create config.ini with default settings and a new signing secret."""
    if DEFAULT_CONFIG_PATH.exists() and not force:
        typer.echo(f"[ERROR] {DEFAULT_CONFIG_PATH} already exists. Use --force to overwrite.")
        raise typer.Exit(code=1)
    write_default_config(DEFAULT_CONFIG_PATH, name)
    typer.echo(f"[OK] Config created at {DEFAULT_CONFIG_PATH}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Server host"),
    port: Optional[int] = typer.Option(None, "--port", help="Server port"),
) -> None:
    """Start the lending API server."""
    config = _ensure_config()
    setup_logging(config.logging.level)

    problems = _service(config).check()
    if problems:
        logger.warning(f"Store has {len(problems)} consistency problem(s); run: booklend check")

    try:
        run_server(config, host=host, port=port)
    except KeyboardInterrupt:
        pass


@app.command()
def stats() -> None:
    """Show library statistics."""
    config = _ensure_config()
    counts = _service(config).stats()

    typer.echo("Library Statistics:")
    typer.echo(f"  Users: {counts['users']}")
    typer.echo(f"  Books: {counts['books']} ({counts['available']} available)")
    typer.echo(f"  Borrowed: {counts['borrowed']}")
    typer.echo(f"  Overdue: {counts['overdue']}")


@app.command()
def check() -> None:
    """Verify book availability against open borrow records (exit 1 on problems)."""
    config = _ensure_config()
    problems = _service(config).check()

    if not problems:
        typer.echo(f"[OK] {config.store_path} is consistent.")
        raise typer.Exit(code=0)

    for problem in problems:
        typer.echo(f"[WARN] {problem}")
    raise typer.Exit(code=1)


@app.command()
def reset(
    confirm: bool = typer.Option(False, "--confirm", help="Confirm destructive reset"),
) -> None:
    """Replace the store with an empty document."""
    if not confirm:
        typer.echo("[ERROR] This will delete all users, books and borrow records. Use --confirm.")
        raise typer.Exit(code=1)

    config = _ensure_config()
    DocumentStore(config.store_path).reset()
    typer.echo(f"[INFO] {config.store_path} reset to an empty document.")


if __name__ == "__main__":
    app()
