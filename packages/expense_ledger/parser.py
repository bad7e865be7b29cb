"""Record parser: one raw row of fields -> :class:`Expense` or :class:`ParseError`.

A row carries exactly four fields in canonical order (date, amount, category,
description). Validation failures are returned as values, never raised, so
the loader can keep going after a bad row.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal

from .categories import canonicalize, lookup
from .config import CategoryPolicy
from .models import CENT, FIELD_ORDER, Expense, ParseError, ParseErrorReason

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
# Totals of up to 10**11 such amounts stay exact in the default 28-digit context.
MAX_AMOUNT = Decimal("1e15")

_AMOUNT_RE = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?")


class FieldError(ValueError):
    """A single field failed validation; carries the matching reason."""

    def __init__(self, reason: ParseErrorReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------


def parse_amount(raw: str | None) -> Decimal:
    """Parse a signed decimal amount with at most two fractional digits.

    Only plain notation is numeric here: optional sign, digits, optional
    fraction. Exponents, digit separators and ``NaN``/``Infinity`` are
    rejected, as is any magnitude of ``MAX_AMOUNT`` or more. The result is
    quantized to cents so ``"12.5"`` becomes ``Decimal("12.50")``.
    """

    s = (raw or "").strip()
    if not s:
        raise FieldError(ParseErrorReason.MISSING_FIELD, "amount is empty")
    if not _AMOUNT_RE.fullmatch(s):
        raise FieldError(ParseErrorReason.INVALID_AMOUNT, f"invalid amount: {raw!r}")
    d = Decimal(s)
    if abs(d) >= MAX_AMOUNT:
        raise FieldError(ParseErrorReason.INVALID_AMOUNT, f"amount out of range: {raw!r}")
    cents = d.quantize(CENT)
    if cents != d:
        raise FieldError(
            ParseErrorReason.INVALID_AMOUNT,
            f"amount has more than two fractional digits: {raw!r}",
        )
    return cents


def parse_date(raw: str | None, date_format: str = DEFAULT_DATE_FORMAT) -> date:
    """Parse a calendar date with one fixed ``strptime`` format."""

    s = (raw or "").strip()
    if not s:
        raise FieldError(ParseErrorReason.MISSING_FIELD, "date is empty")
    try:
        return datetime.strptime(s, date_format).date()
    except ValueError as exc:
        raise FieldError(
            ParseErrorReason.INVALID_DATE,
            f"invalid date {raw!r} (expected format {date_format})",
        ) from exc


# ---------------------------------------------------------------------------
# Row parser
# ---------------------------------------------------------------------------


def parse_row(
    fields: Sequence[str],
    row_index: int,
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
    category_policy: CategoryPolicy = "fallback",
    payment_method: str | None = None,
) -> Expense | ParseError:
    """Validate one row and build an :class:`Expense`.

    Checks run in column order, so a row with both a bad date and a bad
    amount reports the date. With ``category_policy="fallback"`` the category
    never causes a failure: unrecognized labels become ``Unknown``. With
    ``"error"`` a non-empty unrecognized label yields ``UNKNOWN_CATEGORY``.

    ``payment_method`` travels outside the four fields; it is trimmed and a
    blank value is stored as ``None``.
    """

    raw = tuple(fields)
    if len(raw) != len(FIELD_ORDER):
        return ParseError(
            row_index=row_index,
            raw=raw,
            reason=ParseErrorReason.FIELD_COUNT,
            detail=f"expected {len(FIELD_ORDER)} fields, got {len(raw)}",
        )

    date_raw, amount_raw, category_raw, description = raw
    try:
        when = parse_date(date_raw, date_format)
        amount = parse_amount(amount_raw)
    except FieldError as err:
        return ParseError(row_index=row_index, raw=raw, reason=err.reason, detail=str(err))

    if category_policy == "error" and category_raw.strip() and lookup(category_raw) is None:
        return ParseError(
            row_index=row_index,
            raw=raw,
            reason=ParseErrorReason.UNKNOWN_CATEGORY,
            detail=f"unrecognized category: {category_raw!r}",
        )

    return Expense(
        date=when,
        amount=amount,
        category=canonicalize(category_raw),
        description=description,
        row_index=row_index,
        payment_method=(payment_method or "").strip() or None,
    )


__all__ = [
    "DEFAULT_DATE_FORMAT",
    "MAX_AMOUNT",
    "FieldError",
    "parse_amount",
    "parse_date",
    "parse_row",
]
