"""Pytest configuration for test isolation.

Settings and the log level are read from ``EXPENSE_LEDGER_*`` environment
variables, and the CLI configures the package logger once per process. To
keep tests hermetic, an autouse fixture clears those variables and resets the
package logger around every test.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from expense_ledger.logging_setup import reset_logging
from tests.helpers.text import dedent


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop any ``EXPENSE_LEDGER_*`` values inherited from the shell."""

    for name in list(os.environ):
        if name.startswith("EXPENSE_LEDGER_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def write_ledger(tmp_path: Path):
    """Write ``text`` under the test's temp dir and return the path."""

    def _write(name: str, text: str, *, encoding: str = "utf-8") -> Path:
        p = tmp_path / name
        p.write_text(dedent(text), encoding=encoding, newline="")
        return p

    return _write
