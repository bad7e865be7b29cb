"""Data models for ``expense_ledger``.

Every model here is an immutable value. A :class:`Ledger` is built once by
the loader and only read afterwards; :class:`SummaryStatistics` is always
derived from a ledger and never stored.

Monetary values are :class:`decimal.Decimal` quantized to cents. Binary
floats never enter the pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum
from types import MappingProxyType
from typing import TypeVar

from .categories import Category

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Canonical column order of one ledger row.
FIELD_ORDER: tuple[str, ...] = ("date", "amount", "category", "description")

K = TypeVar("K")
V = TypeVar("V")


def frozen_mapping(items: Mapping[K, V] | None = None) -> Mapping[K, V]:
    return MappingProxyType(dict(items or {}))


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Expense:
    """One validated ledger row.

    ``amount`` is signed: negative values are refunds or credits and reduce
    totals. ``row_index`` is the 1-based position of the row in its source and
    is used for deterministic tie-breaking. ``payment_method`` is optional
    (cash, a card name, ...) and ``None`` when the source does not say.
    """

    date: date
    amount: Decimal
    category: Category
    description: str = ""
    row_index: int = 0
    payment_method: str | None = None


class ParseErrorReason(StrEnum):
    FIELD_COUNT = "field_count"
    MISSING_FIELD = "missing_field"
    INVALID_DATE = "invalid_date"
    INVALID_AMOUNT = "invalid_amount"
    # Only produced when the category policy is "error".
    UNKNOWN_CATEGORY = "unknown_category"


@dataclass(frozen=True, slots=True)
class ParseError:
    """A row that failed validation.

    ``row_index`` counts the header as row 0, so the first data row is 1.
    ``raw`` holds the row's fields as read, or a single element with the raw
    text when the row could not be tokenized at all.
    """

    row_index: int
    raw: tuple[str, ...]
    reason: ParseErrorReason
    detail: str = ""


@dataclass(frozen=True, slots=True)
class Ledger:
    """Valid expenses and row-level errors, both in source order."""

    expenses: tuple[Expense, ...] = ()
    errors: tuple[ParseError, ...] = ()
    source: str | None = None

    @property
    def rows_processed(self) -> int:
        return len(self.expenses) + len(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Derived statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GroupTotal:
    """Count and subtotal of the expenses sharing one grouping key."""

    count: int = 0
    subtotal: Decimal = ZERO

    def add(self, amount: Decimal) -> GroupTotal:
        return GroupTotal(self.count + 1, self.subtotal + amount)


@dataclass(frozen=True, slots=True)
class SummaryStatistics:
    """Aggregate view over a collection of expenses.

    Attributes
    ----------
    count, total:
        Number of expenses and their signed sum (``0.00`` when empty).
    mean:
        ``total / count`` rounded half-up to cents; ``None`` when empty.
    minimum, maximum:
        The single expense with the smallest/largest amount, earliest row
        first on ties; ``None`` when empty.
    by_category:
        Observed categories only, in enumeration order.
    by_period:
        Period key (e.g. ``"2024-01"``) to totals, chronological.
    by_description:
        Description to totals, largest subtotal first.
    by_payment_method:
        Payment method to totals, largest subtotal first. Expenses without a
        payment method are not listed.
    first_date, last_date:
        Date span of the expenses; ``None`` when empty.
    """

    count: int = 0
    total: Decimal = ZERO
    mean: Decimal | None = None
    minimum: Expense | None = None
    maximum: Expense | None = None
    by_category: Mapping[Category, GroupTotal] = field(default_factory=frozen_mapping)
    by_period: Mapping[str, GroupTotal] = field(default_factory=frozen_mapping)
    by_description: Mapping[str, GroupTotal] = field(default_factory=frozen_mapping)
    by_payment_method: Mapping[str, GroupTotal] = field(default_factory=frozen_mapping)
    first_date: date | None = None
    last_date: date | None = None
    granularity: str = "month"

    @property
    def empty(self) -> bool:
        return self.count == 0


@dataclass(frozen=True, slots=True)
class PeriodSummary:
    """Statistics for one calendar period of a per-period breakdown.

    ``days`` is the number of days the period actually covers: it starts no
    earlier than the first expense in the ledger and ends no later than the
    reference date. ``per_day`` is ``total / days`` rounded to cents.
    """

    key: str
    start: date
    end: date
    days: int
    statistics: SummaryStatistics
    per_day: Decimal | None = None


__all__ = [
    "CENT",
    "FIELD_ORDER",
    "ZERO",
    "frozen_mapping",
    "Expense",
    "GroupTotal",
    "Ledger",
    "ParseError",
    "ParseErrorReason",
    "PeriodSummary",
    "SummaryStatistics",
]
