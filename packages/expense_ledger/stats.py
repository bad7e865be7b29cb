"""Statistics engine: aggregate views over the expenses of a ledger.

All accumulation uses :class:`decimal.Decimal` on cent-quantized amounts, so
totals are exact and do not depend on summation order. Nothing here raises
on empty input: counts and totals are zero and the mean/min/max are ``None``.

Functions accept either a :class:`Ledger` (its ``errors`` are ignored) or any
iterable of :class:`Expense`, which lets a caller fold a lazily produced
sequence without materializing a ledger first.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeAlias

from .categories import Category
from .config import Granularity
from .models import (
    CENT,
    ZERO,
    Expense,
    GroupTotal,
    Ledger,
    PeriodSummary,
    SummaryStatistics,
    frozen_mapping,
)

GRANULARITIES: tuple[str, ...] = ("day", "month", "year")
# Rolling windows (in days) reported by default.
DEFAULT_WINDOWS: tuple[int, ...] = (7, 14, 30, 365)

ExpenseSource: TypeAlias = "Ledger | Iterable[Expense]"


def _expenses(source: ExpenseSource) -> Iterable[Expense]:
    return source.expenses if isinstance(source, Ledger) else source


def _check_granularity(granularity: str) -> None:
    if granularity not in GRANULARITIES:
        raise ValueError(
            f"unknown granularity {granularity!r}; expected one of {', '.join(GRANULARITIES)}"
        )


def _round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _largest_first(groups: dict[str, GroupTotal]) -> dict[str, GroupTotal]:
    return dict(sorted(groups.items(), key=lambda kv: (-kv[1].subtotal, kv[0])))


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------


def period_key(d: date, granularity: Granularity = "month") -> str:
    """Truncate ``d`` to a sortable period key (``2024-01-05``/``2024-01``/``2024``)."""

    _check_granularity(granularity)
    if granularity == "day":
        return d.isoformat()
    if granularity == "month":
        return f"{d.year:04d}-{d.month:02d}"
    return f"{d.year:04d}"


def period_bounds(d: date, granularity: Granularity = "month") -> tuple[date, date]:
    """Return the first and last calendar day of the period containing ``d``."""

    _check_granularity(granularity)
    if granularity == "day":
        return d, d
    if granularity == "month":
        last = calendar.monthrange(d.year, d.month)[1]
        return d.replace(day=1), d.replace(day=last)
    return date(d.year, 1, 1), date(d.year, 12, 31)


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def summarize(source: ExpenseSource, *, granularity: Granularity = "month") -> SummaryStatistics:
    """Compute :class:`SummaryStatistics` over the expenses of ``source``.

    - ``total`` is the signed sum; refunds reduce it.
    - ``mean`` is ``total / count`` rounded half-up to cents, ``None`` when
      there are no expenses.
    - ``minimum``/``maximum`` break ties by the lowest ``row_index``.
    - ``by_category`` only lists categories that occur.
    - ``by_period`` groups on :func:`period_key` at ``granularity``.
    - ``by_description`` and ``by_payment_method`` list the largest subtotal
      first, ties by name.
    """

    _check_granularity(granularity)

    count = 0
    total = ZERO
    minimum: Expense | None = None
    maximum: Expense | None = None
    first_date: date | None = None
    last_date: date | None = None
    by_category: dict[Category, GroupTotal] = {}
    by_period: dict[str, GroupTotal] = {}
    by_description: dict[str, GroupTotal] = {}
    by_payment_method: dict[str, GroupTotal] = {}

    for e in _expenses(source):
        count += 1
        total += e.amount

        if minimum is None or (e.amount, e.row_index) < (minimum.amount, minimum.row_index):
            minimum = e
        if (
            maximum is None
            or e.amount > maximum.amount
            or (e.amount == maximum.amount and e.row_index < maximum.row_index)
        ):
            maximum = e

        if first_date is None or e.date < first_date:
            first_date = e.date
        if last_date is None or e.date > last_date:
            last_date = e.date

        by_category[e.category] = by_category.get(e.category, GroupTotal()).add(e.amount)
        key = period_key(e.date, granularity)
        by_period[key] = by_period.get(key, GroupTotal()).add(e.amount)
        by_description[e.description] = by_description.get(e.description, GroupTotal()).add(
            e.amount
        )
        if e.payment_method is not None:
            method = e.payment_method
            by_payment_method[method] = by_payment_method.get(method, GroupTotal()).add(e.amount)

    # Deterministic orderings independent of input order.
    ordered_categories = {c: by_category[c] for c in Category if c in by_category}
    ordered_periods = dict(sorted(by_period.items()))
    ordered_descriptions = _largest_first(by_description)

    return SummaryStatistics(
        count=count,
        total=total,
        mean=_round_cents(total / count) if count else None,
        minimum=minimum,
        maximum=maximum,
        by_category=frozen_mapping(ordered_categories),
        by_period=frozen_mapping(ordered_periods),
        by_description=frozen_mapping(ordered_descriptions),
        by_payment_method=frozen_mapping(_largest_first(by_payment_method)),
        first_date=first_date,
        last_date=last_date,
        granularity=granularity,
    )


def per_day(total: Decimal, days: int) -> Decimal | None:
    """Average spend per day, rounded to cents; ``None`` for non-positive ``days``."""

    if days <= 0:
        return None
    return _round_cents(total / days)


def percent_of_total(part: Decimal, total: Decimal) -> Decimal | None:
    """Share of ``total`` as a percentage with two decimals; ``None`` when total is zero."""

    if total == 0:
        return None
    return _round_cents(part * 100 / total)


def breakdown_by_period(
    source: ExpenseSource,
    *,
    granularity: Granularity = "month",
    today: date | None = None,
) -> list[PeriodSummary]:
    """Full statistics per calendar period, oldest first.

    Each period's day coverage starts at the later of the period start and the
    first expense date, and ends at the earlier of the period end and
    ``today`` (defaults to the latest expense date). Coverage is at least one
    day, so a partially observed month averages over the days actually seen.
    """

    _check_granularity(granularity)
    expenses = list(_expenses(source))
    if not expenses:
        return []

    groups: dict[str, list[Expense]] = {}
    for e in expenses:
        groups.setdefault(period_key(e.date, granularity), []).append(e)

    first_seen = min(e.date for e in expenses)
    reference = today or max(e.date for e in expenses)

    summaries: list[PeriodSummary] = []
    for key in sorted(groups):
        members = groups[key]
        start, end = period_bounds(members[0].date, granularity)
        covered_start = max(start, first_seen)
        covered_end = min(end, reference)
        days = max(1, (covered_end - covered_start).days + 1)
        stats = summarize(members, granularity=granularity)
        summaries.append(
            PeriodSummary(
                key=key,
                start=start,
                end=end,
                days=days,
                statistics=stats,
                per_day=per_day(stats.total, days),
            )
        )
    return summaries


def last_n_days(
    source: ExpenseSource,
    days: int,
    *,
    today: date,
    granularity: Granularity = "month",
) -> SummaryStatistics:
    """Summarize expenses dated within the ``days`` days ending at ``today``.

    The window is inclusive of ``today`` and excludes future-dated expenses:
    ``0 <= (today - expense.date).days < days``.
    """

    if days <= 0:
        raise ValueError(f"window must be a positive number of days, got {days}")
    window_start = today - timedelta(days=days - 1)
    return summarize(
        (e for e in _expenses(source) if window_start <= e.date <= today),
        granularity=granularity,
    )


def window_summaries(
    source: ExpenseSource,
    *,
    today: date,
    windows: Iterable[int] = DEFAULT_WINDOWS,
) -> dict[int, SummaryStatistics]:
    """Return :func:`last_n_days` for each window, keyed by window length."""

    expenses = list(_expenses(source))
    return {n: last_n_days(expenses, n, today=today) for n in sorted(set(windows))}


def top_descriptions(
    stats: SummaryStatistics,
    *,
    limit: int = 10,
    minimum: Decimal | None = None,
) -> list[tuple[str, GroupTotal]]:
    """Largest description subtotals, skipping blank descriptions.

    ``minimum`` keeps only subtotals strictly greater than it.
    """

    out: list[tuple[str, GroupTotal]] = []
    for desc, group in stats.by_description.items():
        if len(out) >= limit:
            break
        if not desc.strip():
            continue
        if minimum is not None and group.subtotal <= minimum:
            continue
        out.append((desc, group))
    return out


__all__ = [
    "DEFAULT_WINDOWS",
    "GRANULARITIES",
    "breakdown_by_period",
    "last_n_days",
    "per_day",
    "percent_of_total",
    "period_bounds",
    "period_key",
    "summarize",
    "top_descriptions",
    "window_summaries",
]
