"""Spending category enumeration and free-text canonicalization.

The category set is closed. Any label that does not match one of the members
(case-insensitively, after trimming and collapsing whitespace) lands in
``Category.UNKNOWN``; canonicalization never fails.
"""

from __future__ import annotations

from enum import StrEnum


class Category(StrEnum):
    BOOKS = "Books"
    CHARITY = "Charity"
    CLOTHING = "Clothing"
    GROCERY = "Grocery"
    EDUCATION = "Education"
    ENTERTAINMENT = "Entertainment"
    FINE = "Fine"
    GIFT = "Gift"
    HEALTHCARE = "Healthcare"
    HOBBY = "Hobby"
    INSURANCE = "Insurance"
    RENT = "Rent"
    RESTAURANTS = "Restaurants"
    SAVINGS = "Savings"
    SHOPPING = "Shopping"
    SPORT = "Sport"
    TAXES = "Taxes"
    TRANSPORTATION = "Transportation"
    TRAVEL = "Travel"
    UTILITIES = "Utilities"
    MISCELLANEOUS = "Miscellaneous"
    UNKNOWN = "Unknown"


def normalize_label(raw: str) -> str:
    """Return a trimmed, single-spaced, case-folded form of ``raw``."""

    return " ".join(raw.split()).casefold()


_BY_LABEL: dict[str, Category] = {normalize_label(c.value): c for c in Category}


def lookup(raw: str | None) -> Category | None:
    """Return the matching member, or ``None`` when ``raw`` is not recognized."""

    if raw is None:
        return None
    return _BY_LABEL.get(normalize_label(raw))


def canonicalize(raw: str | None) -> Category:
    """Map a free-text label onto the closed category set.

    ``"  grocery "`` resolves to ``Category.GROCERY``; ``"Yacht"``, ``""`` and
    ``None`` resolve to ``Category.UNKNOWN``.
    """

    return lookup(raw) or Category.UNKNOWN


__all__ = ["Category", "canonicalize", "lookup", "normalize_label"]
