"""Console rendering of ledger statistics with ``rich`` tables.

Pure presentation: every function takes already-computed values and a
:class:`rich.console.Console`. Nothing here computes aggregates.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import GroupTotal, ParseError, PeriodSummary, SummaryStatistics
from .stats import per_day, percent_of_total


def format_amount(value: Decimal | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:,.2f}"


def _amount_style(value: Decimal) -> str:
    return "green" if value < 0 else ""


def render_overview(console: Console, stats: SummaryStatistics, *, title: str = "Summary") -> None:
    """Totals, mean and extremes."""

    table = Table(title=title, show_header=False, title_justify="left")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Expenses", str(stats.count))
    table.add_row("Total", format_amount(stats.total))
    table.add_row("Mean", format_amount(stats.mean))
    if stats.first_date is not None and stats.last_date is not None:
        table.add_row("From", stats.first_date.isoformat())
        table.add_row("To", stats.last_date.isoformat())
    for label, e in (("Smallest", stats.minimum), ("Largest", stats.maximum)):
        if e is None:
            table.add_row(label, "n/a")
        else:
            table.add_row(
                label,
                f"{format_amount(e.amount)} ({e.category}, {e.date.isoformat()}"
                + (f", {escape(repr(e.description))})" if e.description else ")"),
            )
    console.print(table)


def render_categories(console: Console, stats: SummaryStatistics) -> None:
    """Per-category breakdown, largest subtotal first."""

    table = Table(title="By category", title_justify="left")
    table.add_column("Category")
    table.add_column("Count", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("% of total", justify="right")

    rows = sorted(stats.by_category.items(), key=lambda kv: -kv[1].subtotal)
    for category, group in rows:
        share = percent_of_total(group.subtotal, stats.total)
        table.add_row(
            str(category),
            str(group.count),
            format_amount(group.subtotal),
            f"{share}%" if share is not None else "n/a",
            style=_amount_style(group.subtotal),
        )
    table.add_section()
    table.add_row("Total", str(stats.count), format_amount(stats.total), "100.00%", style="bold")
    console.print(table)


def render_payment_methods(console: Console, stats: SummaryStatistics) -> None:
    """Spending per payment method; nothing is printed when none was recorded."""

    if not stats.by_payment_method:
        return
    table = Table(title="By payment method", title_justify="left")
    table.add_column("Payment method")
    table.add_column("Count", justify="right")
    table.add_column("Amount", justify="right")
    for method, group in stats.by_payment_method.items():
        table.add_row(escape(method), str(group.count), format_amount(group.subtotal))
    console.print(table)


def render_periods(console: Console, periods: Sequence[PeriodSummary]) -> None:
    """One row per calendar period with its daily average."""

    table = Table(title="By period", title_justify="left")
    table.add_column("Period")
    table.add_column("Count", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Per day", justify="right")
    for p in periods:
        table.add_row(
            p.key,
            str(p.statistics.count),
            format_amount(p.statistics.total),
            str(p.days),
            format_amount(p.per_day),
        )
    console.print(table)


def render_windows(console: Console, windows: Mapping[int, SummaryStatistics]) -> None:
    """Rolling "last N days" totals."""

    table = Table(title="Recent activity", title_justify="left")
    table.add_column("Window")
    table.add_column("Count", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("Per day", justify="right")
    for days, stats in windows.items():
        table.add_row(
            f"last {days} days",
            str(stats.count),
            format_amount(stats.total),
            format_amount(per_day(stats.total, days)),
        )
    console.print(table)


def render_top_descriptions(console: Console, items: Sequence[tuple[str, GroupTotal]]) -> None:
    if not items:
        return
    table = Table(title="Biggest expenses", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Description")
    table.add_column("Count", justify="right")
    table.add_column("Amount", justify="right")
    for pos, (desc, group) in enumerate(items, start=1):
        table.add_row(str(pos), escape(desc), str(group.count), format_amount(group.subtotal))
    console.print(table)


def render_errors(console: Console, errors: Sequence[ParseError], *, limit: int = 50) -> None:
    """List rejected rows (row number, reason, detail)."""

    if not errors:
        return
    table = Table(title=f"Rejected rows ({len(errors)})", title_justify="left", style="yellow")
    table.add_column("Row", justify="right")
    table.add_column("Reason")
    table.add_column("Detail")
    for err in errors[:limit]:
        table.add_row(str(err.row_index), str(err.reason), escape(err.detail))
    console.print(table)
    if len(errors) > limit:
        console.print(f"[yellow]... {len(errors) - limit} more rejected row(s) not shown[/yellow]")


__all__ = [
    "format_amount",
    "render_categories",
    "render_errors",
    "render_overview",
    "render_payment_methods",
    "render_periods",
    "render_top_descriptions",
    "render_windows",
]
