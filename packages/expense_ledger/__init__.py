"""Public interface for the ``expense_ledger`` package.

This module re-exports the loader, statistics functions and models as the
stable import surface. There is no runtime logic here, only symbol
re-exports.
"""

from .categories import Category, canonicalize
from .config import LedgerSettings, load_settings
from .loader import LedgerLoadError, load, load_csv_text, load_file, load_xml_text
from .models import (
    Expense,
    GroupTotal,
    Ledger,
    ParseError,
    ParseErrorReason,
    PeriodSummary,
    SummaryStatistics,
)
from .parser import parse_row
from .stats import (
    DEFAULT_WINDOWS,
    breakdown_by_period,
    last_n_days,
    period_key,
    summarize,
    top_descriptions,
    window_summaries,
)

__all__ = [
    # Loading
    "load",
    "load_csv_text",
    "load_xml_text",
    "load_file",
    "parse_row",
    "canonicalize",
    "LedgerLoadError",
    # Statistics
    "summarize",
    "period_key",
    "breakdown_by_period",
    "last_n_days",
    "window_summaries",
    "top_descriptions",
    "DEFAULT_WINDOWS",
    # Configuration
    "LedgerSettings",
    "load_settings",
    # Models / types
    "Category",
    "Expense",
    "GroupTotal",
    "Ledger",
    "ParseError",
    "ParseErrorReason",
    "PeriodSummary",
    "SummaryStatistics",
]
