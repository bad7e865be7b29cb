"""Logging for the ``expense_ledger`` package.

Library modules only ever call ``get_logger("expense_ledger.<module>")``.
Until an entrypoint calls :func:`configure_logging`, the package root logger
carries a ``NullHandler`` so importing the library stays silent. The CLI
configures it once, with the level resolved by
:class:`expense_ledger.config.LedgerSettings`.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

_PKG_LOGGER_NAME = "expense_ledger"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def level_from_name(name: str) -> int:
    """Map ``"debug"``/``"INFO"``/``"10"`` to a numeric level.

    Raises ``ValueError`` for names the logging module does not know.
    """

    key = name.strip().upper()
    if key.isdigit():
        return int(key)
    try:
        return logging.getLevelNamesMapping()[key]
    except KeyError:
        raise ValueError(f"unknown log level {name!r}") from None


def configure_logging(level: int | str = logging.INFO, *, stream: IO[str] | None = None) -> None:
    """Send package records at ``level`` and above to ``stream`` (default stderr).

    Later calls are no-ops until :func:`reset_logging`.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = level if isinstance(level, int) else level_from_name(level)
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False
    _CONFIGURED = True


def reset_logging() -> None:
    """Undo :func:`configure_logging` (tests configure more than once)."""

    global _CONFIGURED
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _CONFIGURED = False


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "level_from_name", "reset_logging"]
