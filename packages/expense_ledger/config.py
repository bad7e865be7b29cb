"""Runtime settings for loading and summarizing a ledger.

Settings resolve in this order: explicit overrides (CLI options), then
``EXPENSE_LEDGER_*`` environment variables, then defaults. The CLI loads a
``.env`` from the working directory before calling :func:`load_settings`
without overriding variables that are already set.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from .logging_setup import level_from_name

ENV_PREFIX = "EXPENSE_LEDGER_"

CategoryPolicy = Literal["fallback", "error"]
Granularity = Literal["day", "month", "year"]
InputFormat = Literal["auto", "csv", "xml"]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

# Field name -> environment variable suffix.
_ENV_FIELDS: dict[str, str] = {
    "date_format": "DATE_FORMAT",
    "delimiter": "DELIMITER",
    "has_header": "HAS_HEADER",
    "category_policy": "CATEGORY_POLICY",
    "granularity": "PERIOD",
    "input_format": "FORMAT",
    "log_level": "LOG_LEVEL",
}


class LedgerSettings(BaseModel):
    """Validated loader/statistics options."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    date_format: str = "%Y-%m-%d"
    delimiter: str = ","
    has_header: bool = True
    category_policy: CategoryPolicy = "fallback"
    granularity: Granularity = "month"
    input_format: InputFormat = "auto"
    log_level: str = "INFO"

    @field_validator("delimiter")
    @classmethod
    def _single_character(cls, v: str) -> str:
        if v == "\\t":
            v = "\t"
        if len(v) != 1 or v in {'"', "\r", "\n"}:
            raise ValueError("delimiter must be a single character other than a quote or newline")
        return v

    @field_validator("date_format")
    @classmethod
    def _usable_date_format(cls, v: str) -> str:
        if not v.strip() or "%" not in v:
            raise ValueError("date_format must be a strptime format such as %Y-%m-%d")
        # Round-trip a fixed date to reject formats strptime cannot read back.
        sample = datetime(2024, 1, 31)
        try:
            datetime.strptime(sample.strftime(v), v)
        except ValueError as exc:
            raise ValueError(f"date_format {v!r} cannot be parsed back: {exc}") from exc
        return v

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, v: str) -> str:
        level_from_name(v)
        return v.strip().upper()

    @field_validator("category_policy", "granularity", "input_format", mode="before")
    @classmethod
    def _lowercase(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("has_header", mode="before")
    @classmethod
    def _parse_bool(cls, v: Any) -> Any:
        if isinstance(v, str):
            s = v.strip().lower()
            if s in _TRUE:
                return True
            if s in _FALSE:
                return False
        return v


def settings_from_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect ``EXPENSE_LEDGER_*`` values present in ``environ``."""

    env = os.environ if environ is None else environ
    values: dict[str, str] = {}
    for name, suffix in _ENV_FIELDS.items():
        raw = env.get(ENV_PREFIX + suffix)
        if raw is not None and raw.strip():
            values[name] = raw
    return values


def load_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """Build :class:`LedgerSettings` from env values plus explicit overrides.

    ``None`` values in ``overrides`` mean "not given" and do not mask the
    environment. Raises ``pydantic.ValidationError`` on invalid values.
    """

    merged: dict[str, Any] = dict(settings_from_env(environ))
    for key, val in (overrides or {}).items():
        if val is not None:
            merged[key] = val
    return LedgerSettings(**merged)


__all__ = [
    "ENV_PREFIX",
    "CategoryPolicy",
    "Granularity",
    "InputFormat",
    "LedgerSettings",
    "load_settings",
    "settings_from_env",
]
