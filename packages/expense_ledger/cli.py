"""Typer console interface for ``expense_ledger``.

``expense-ledger PATH`` loads a ledger file, prints summary tables with
``rich`` and lists rejected rows. Environment variables are read from a local
``.env`` (via ``python-dotenv``, never overriding the real environment) before
settings are resolved.

Exit codes
----------
- ``0``: summary printed (rejected rows alone do not fail the run).
- ``1``: fatal load failure (file unreadable, invalid encoding, bad XML).
- ``2``: invalid options or ``EXPENSE_LEDGER_*`` settings.
- ``3``: rows were rejected and ``--fail-on-errors`` was given.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .config import load_settings
from .loader import LedgerLoadError, load_file
from .logging_setup import configure_logging, get_logger
from .report import (
    render_categories,
    render_errors,
    render_overview,
    render_payment_methods,
    render_periods,
    render_top_descriptions,
    render_windows,
)
from .stats import (
    DEFAULT_WINDOWS,
    breakdown_by_period,
    summarize,
    top_descriptions,
    window_summaries,
)

EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_ROW_ERRORS = 3

_logger = get_logger("expense_ledger.cli")

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Summarize a personal expense ledger (CSV or XML): totals per category, "
        "per period and over recent windows. Loads EXPENSE_LEDGER_* settings from "
        "a local .env before running."
    ),
)


def _settings_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


@app.command()
def summarize_ledger(
    path: Annotated[Path, typer.Argument(help="Ledger file (CSV or XML).")],
    no_header: Annotated[
        bool, typer.Option("--no-header", help="Treat the first CSV row as data.")
    ] = False,
    input_format: Annotated[
        str | None, typer.Option("--format", "-f", help="auto, csv or xml (default: auto).")
    ] = None,
    delimiter: Annotated[
        str | None, typer.Option(help="CSV field delimiter (default: ',').")
    ] = None,
    date_format: Annotated[
        str | None, typer.Option(help="strptime format of the date column (default: %Y-%m-%d).")
    ] = None,
    period: Annotated[
        str | None, typer.Option(help="Period granularity: day, month or year.")
    ] = None,
    window: Annotated[
        list[int] | None,
        typer.Option(help="Rolling window in days; repeatable (default: 7 14 30 365)."),
    ] = None,
    today: Annotated[
        datetime | None,
        typer.Option(formats=["%Y-%m-%d"], help="Reference date for windows (default: today)."),
    ] = None,
    top: Annotated[int, typer.Option(min=0, help="How many largest descriptions to list.")] = 10,
    strict_categories: Annotated[
        bool,
        typer.Option(
            "--strict-categories", help="Reject rows whose category is not recognized."
        ),
    ] = False,
    fail_on_errors: Annotated[
        bool, typer.Option("--fail-on-errors", help="Exit with status 3 if any row is rejected.")
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option(help="Logging level (default: EXPENSE_LEDGER_LOG_LEVEL or INFO)."),
    ] = None,
) -> None:
    """Load PATH and print summary statistics."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    try:
        settings = load_settings(
            {
                "has_header": False if no_header else None,
                "input_format": input_format,
                "delimiter": delimiter,
                "date_format": date_format,
                "granularity": period,
                "category_policy": "error" if strict_categories else None,
                "log_level": log_level,
            }
        )
    except ValidationError as exc:
        message = f"invalid settings: {_settings_error(exc)}"
        err_console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
        raise typer.Exit(EXIT_USAGE) from None

    configure_logging(settings.log_level)

    try:
        ledger = load_file(path, settings)
    except LedgerLoadError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(EXIT_FATAL) from None

    reference: date = today.date() if today is not None else date.today()
    windows = tuple(window) if window else DEFAULT_WINDOWS
    if any(n <= 0 for n in windows):
        err_console.print("[red]Error:[/red] --window values must be positive", soft_wrap=True)
        raise typer.Exit(EXIT_USAGE)

    console.print(f"[bold]Ledger:[/bold] {escape(str(path))}", soft_wrap=True, highlight=False)
    if ledger.expenses:
        stats = summarize(ledger, granularity=settings.granularity)
        render_overview(console, stats)
        render_categories(console, stats)
        render_payment_methods(console, stats)
        render_periods(
            console,
            breakdown_by_period(ledger, granularity=settings.granularity, today=reference),
        )
        render_windows(console, window_summaries(ledger, today=reference, windows=windows))
        render_top_descriptions(console, top_descriptions(stats, limit=top))
    else:
        console.print("[yellow]No valid expenses found.[/yellow]")

    render_errors(console, ledger.errors)
    _logger.debug(
        "Processed %d row(s): %d expense(s), %d rejected",
        ledger.rows_processed,
        len(ledger.expenses),
        len(ledger.errors),
    )

    if fail_on_errors and ledger.errors:
        raise typer.Exit(EXIT_ROW_ERRORS)


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    app()
