"""Typer CLI for checking SQL queries against the gate."""

from __future__ import annotations

import logging
from pathlib import Path

import sqlparse
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Load .env early so SQLGATE_* settings are visible to Settings()
load_dotenv()

from sqlgate.config import Settings
from sqlgate.sql.guard import QueryValidator

app = typer.Typer(
    name="sqlgate",
    help="Read-only SQL safety gate for agent-submitted queries.",
    no_args_is_help=True,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _build_validator(settings: Settings, no_whitelist: bool, patterns: list[str]) -> QueryValidator:
    if no_whitelist:
        settings.whitelist_enabled = False
    validator = QueryValidator.from_settings(settings)
    for pattern in patterns:
        validator.add_whitelist_pattern(pattern)
    return validator


@app.command()
def check(
    sql: str | None = typer.Argument(None, help="SQL query to check"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Read the query from a file"),
    no_whitelist: bool = typer.Option(
        False, "--no-whitelist", help="Skip whitelist matching (blacklist still applies)"
    ),
    pattern: list[str] | None = typer.Option(
        None, "--pattern", "-p", help="Extra whitelist regex (repeatable)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Check a query and exit non-zero if it is rejected."""
    settings = Settings()
    settings.verbose = verbose
    _configure_logging(settings.verbose)

    if file is not None:
        try:
            sql = file.read_text(encoding="utf-8")
        except OSError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=2) from e
    if sql is None:
        console.print("[red]Error:[/red] provide a query or --file")
        raise typer.Exit(code=2)

    validator = _build_validator(settings, no_whitelist, pattern or [])
    result = validator.check(sql)

    if result.approved:
        console.print("[green]APPROVED[/green]")
        if verbose:
            console.print(sqlparse.format(sql, reindent=True, keyword_case="upper"))
        return

    rejection = result.rejection
    console.print(f"[red]REJECTED[/red] ({rejection.kind.value})")
    console.print(f"Reason: {escape(rejection.reason)}")
    raise typer.Exit(code=1)


@app.command()
def patterns(
    custom_only: bool = typer.Option(False, "--custom-only", help="Show only configured extras"),
) -> None:
    """List the effective whitelist patterns."""
    settings = Settings()
    validator = QueryValidator.from_settings(settings)

    table = Table(title="Whitelist Patterns")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Pattern", style="cyan")

    shown = validator.patterns
    if custom_only:
        shown = shown[len(shown) - len(settings.whitelist_patterns) :]
    for i, compiled in enumerate(shown, 1):
        table.add_row(str(i), escape(compiled.pattern))

    console.print(table)
    state = "enabled" if validator.whitelist_enabled else "disabled"
    console.print(f"\n[dim]Whitelist {state}; {len(validator.patterns)} patterns total[/dim]")


if __name__ == "__main__":
    app()
