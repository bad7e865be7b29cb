"""Ledger loader: tokenize an input source and parse every row into a Ledger.

Supported encodings of the same logical ledger:

- Delimited text (RFC 4180 via the stdlib :mod:`csv` module in strict mode):
  quoted fields may hold the delimiter, embedded newlines and doubled quotes.
  A record with malformed quoting becomes a row-level ``FIELD_COUNT`` error
  and loading resumes with the next line.
- XML: one ``<transaction>`` (or ``<expense>``) element per row, with the four
  fields given as attributes or child elements. ``note`` is accepted as an
  alias of ``description``. ``<budget>`` elements are ignored.

Both encodings may also carry an optional payment method (a ``payment`` or
``payment method`` header column, or a ``payment-method`` attribute).

Row-level failures never abort a load. Only unrecoverable conditions (file
unreadable, bytes not UTF-8, XML not well-formed) raise
:class:`LedgerLoadError`.
"""

from __future__ import annotations

import csv
import io
import re
import xml.etree.ElementTree as ET
from collections import deque
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from .categories import normalize_label
from .config import CategoryPolicy, InputFormat, LedgerSettings
from .logging_setup import get_logger
from .models import FIELD_ORDER, Expense, Ledger, ParseError, ParseErrorReason
from .parser import DEFAULT_DATE_FORMAT, parse_row

_logger = get_logger("expense_ledger.loader")

TRANSACTION_TAGS = frozenset({"transaction", "expense"})
IGNORED_TAGS = frozenset({"budget"})
PAYMENT_COLUMN = "payment_method"
# Header/attribute aliases mapped onto canonical column names.
COLUMN_ALIASES: dict[str, str] = {
    "note": "description",
    "payment": PAYMENT_COLUMN,
    "payment method": PAYMENT_COLUMN,
    "payment-method": PAYMENT_COLUMN,
}

_XML_DECL_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


class LedgerLoadError(Exception):
    """Fatal failure reading or decoding a ledger source."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


@dataclass(frozen=True, slots=True)
class _RawRecord:
    """One tokenized record, or the raw text of a record that failed to tokenize."""

    fields: tuple[str, ...] | None
    text: str = ""
    error: str | None = None
    payment_method: str | None = None

    @property
    def blank(self) -> bool:
        # An empty line, or one holding only whitespace. ",,," is a data row.
        if self.fields is None:
            return False
        return len(self.fields) == 0 or (len(self.fields) == 1 and not self.fields[0].strip())


@dataclass(frozen=True, slots=True)
class _Columns:
    """Where the canonical columns sit in a recognized header."""

    positions: tuple[int, ...]
    width: int
    payment: int | None = None

    def pick(self, fields: Sequence[str]) -> tuple[tuple[str, ...], str | None]:
        ordered = tuple(fields[i] for i in self.positions)
        return ordered, fields[self.payment] if self.payment is not None else None


# ---------------------------------------------------------------------------
# Assembly (format-agnostic)
# ---------------------------------------------------------------------------


def _canonical_column(name: str) -> str:
    key = normalize_label(name)
    return COLUMN_ALIASES.get(key, key)


def _header_columns(header: Sequence[str]) -> _Columns | None:
    """Locate the canonical columns in ``header``, or return ``None``."""

    names = [_canonical_column(h) for h in header]
    if any(col not in names for col in FIELD_ORDER):
        return None
    return _Columns(
        positions=tuple(names.index(col) for col in FIELD_ORDER),
        width=len(names),
        payment=names.index(PAYMENT_COLUMN) if PAYMENT_COLUMN in names else None,
    )


def _assemble(
    records: Iterable[_RawRecord],
    *,
    has_header: bool,
    date_format: str,
    category_policy: CategoryPolicy,
    source: str | None,
) -> Ledger:
    expenses: list[Expense] = []
    errors: list[ParseError] = []
    columns: _Columns | None = None
    header_pending = has_header
    row_index = 0

    for rec in records:
        if rec.blank:
            continue

        if header_pending:
            header_pending = False
            if rec.fields is not None:
                columns = _header_columns(rec.fields)
                if columns is None:
                    _logger.warning(
                        "Header %r does not name the columns %s; using positional order",
                        list(rec.fields),
                        ", ".join(FIELD_ORDER),
                    )
                continue
            _logger.warning("Header row could not be tokenized: %s", rec.error)
            continue

        row_index += 1
        if rec.fields is None:
            err = ParseError(
                row_index=row_index,
                raw=(rec.text,),
                reason=ParseErrorReason.FIELD_COUNT,
                detail=f"malformed row: {rec.error}",
            )
            errors.append(err)
            _logger.debug("Row %d rejected: %s", row_index, err.detail)
            continue

        fields: Sequence[str] = rec.fields
        payment_method = rec.payment_method
        if columns is not None:
            if len(fields) != columns.width:
                errors.append(
                    ParseError(
                        row_index=row_index,
                        raw=rec.fields,
                        reason=ParseErrorReason.FIELD_COUNT,
                        detail=f"expected {columns.width} fields, got {len(fields)}",
                    )
                )
                _logger.debug("Row %d rejected: field count %d", row_index, len(fields))
                continue
            fields, payment_method = columns.pick(fields)

        result = parse_row(
            fields,
            row_index,
            date_format=date_format,
            category_policy=category_policy,
            payment_method=payment_method,
        )
        if isinstance(result, ParseError):
            if columns is not None:
                # Report the row as it appeared in the source.
                result = ParseError(result.row_index, rec.fields, result.reason, result.detail)
            errors.append(result)
            _logger.debug("Row %d rejected: %s", row_index, result.detail)
        else:
            expenses.append(result)

    if errors:
        _logger.warning(
            "Loaded %d expense(s) from %s; %d row(s) rejected",
            len(expenses),
            source or "<input>",
            len(errors),
        )
    else:
        _logger.info("Loaded %d expense(s) from %s", len(expenses), source or "<input>")

    return Ledger(expenses=tuple(expenses), errors=tuple(errors), source=source)


def load(
    rows: Iterable[Sequence[str]],
    *,
    has_header: bool = True,
    date_format: str = DEFAULT_DATE_FORMAT,
    category_policy: CategoryPolicy = "fallback",
    source: str | None = None,
) -> Ledger:
    """Build a :class:`Ledger` from already-tokenized rows.

    The first non-blank row is skipped as a header when ``has_header`` is set.
    A header naming all four columns (any order, case-insensitive) re-orders
    the data rows into canonical order.
    """

    return _assemble(
        (_RawRecord(tuple(r)) for r in rows),
        has_header=has_header,
        date_format=date_format,
        category_policy=category_policy,
        source=source,
    )


# ---------------------------------------------------------------------------
# Delimited text
# ---------------------------------------------------------------------------


class _LineRecorder:
    """Line iterator that remembers the lines consumed since the last ``take``.

    Lines handed back with :meth:`push_back` are replayed before the rest of
    the input.
    """

    def __init__(self, lines: Iterable[str]) -> None:
        self._it = iter(lines)
        self._pending: deque[str] = deque()
        self._buffer: list[str] = []
        self._exhausted = False

    def __iter__(self) -> _LineRecorder:
        return self

    def __next__(self) -> str:
        if self._pending:
            line = self._pending.popleft()
        else:
            try:
                line = next(self._it)
            except StopIteration:
                self._exhausted = True
                raise
        self._buffer.append(line)
        return line

    @property
    def at_end(self) -> bool:
        return self._exhausted and not self._pending

    def take(self) -> list[str]:
        lines = list(self._buffer)
        self._buffer.clear()
        return lines

    def push_back(self, lines: Sequence[str]) -> None:
        self._pending.extendleft(reversed(lines))


def iter_csv_records(text: str, *, delimiter: str = ",") -> Iterator[_RawRecord]:
    """Tokenize delimited text, yielding one record per logical row.

    The reader runs in strict mode so malformed quoting raises ``csv.Error``;
    the offending record is yielded with its raw text and iteration resumes on
    the following line. An unterminated quote would otherwise swallow the
    rest of the input, so in that case only its first line is reported and
    the lines after it are tokenized again.
    """

    recorder = _LineRecorder(io.StringIO(text, newline=""))
    reader = csv.reader(recorder, delimiter=delimiter, strict=True)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            lines = recorder.take()
            if len(lines) > 1 and recorder.at_end:
                recorder.push_back(lines[1:])
                lines = lines[:1]
            yield _RawRecord(None, text="".join(lines), error=str(exc))
            continue
        yield _RawRecord(tuple(row), text="".join(recorder.take()))


def load_csv_text(
    text: str,
    *,
    has_header: bool = True,
    delimiter: str = ",",
    date_format: str = DEFAULT_DATE_FORMAT,
    category_policy: CategoryPolicy = "fallback",
    source: str | None = None,
) -> Ledger:
    """Parse delimited text into a :class:`Ledger`."""

    return _assemble(
        iter_csv_records(text, delimiter=delimiter),
        has_header=has_header,
        date_format=date_format,
        category_policy=category_policy,
        source=source,
    )


# ---------------------------------------------------------------------------
# XML
# ---------------------------------------------------------------------------


def _element_record(el: ET.Element) -> _RawRecord:
    values: dict[str, str] = {}
    for child in el:
        values.setdefault(_canonical_column(child.tag), child.text or "")
    # Attributes win over child elements.
    for key, val in el.attrib.items():
        values[_canonical_column(key)] = val
    return _RawRecord(
        tuple(values.get(col, "") for col in FIELD_ORDER),
        payment_method=values.get(PAYMENT_COLUMN),
    )


def _parse_xml(text: str, *, source: str | None) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        # Ledgers are often a flat list of elements with no enclosing root.
        body = _XML_DECL_RE.sub("", text, count=1)
        try:
            return ET.fromstring(f"<ledger>{body}</ledger>")
        except ET.ParseError:
            raise LedgerLoadError(f"malformed XML: {exc}", source=source) from exc


def iter_xml_records(text: str, *, source: str | None = None) -> Iterator[_RawRecord]:
    """Yield one record per transaction element of an XML document.

    Documents without a single root element are read as if wrapped in one.
    Raises :class:`LedgerLoadError` when the content is not well-formed.
    """

    root = _parse_xml(text, source=source)
    if root.tag.lower() in TRANSACTION_TAGS:
        yield _element_record(root)
        return

    for child in root:
        tag = child.tag.lower()
        if tag not in TRANSACTION_TAGS and tag not in IGNORED_TAGS:
            _logger.warning("Skipping unknown XML element <%s>", child.tag)

    for el in root.iter():
        if el.tag.lower() in TRANSACTION_TAGS:
            yield _element_record(el)


def load_xml_text(
    text: str,
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
    category_policy: CategoryPolicy = "fallback",
    source: str | None = None,
) -> Ledger:
    """Parse an XML document into a :class:`Ledger`.

    XML carries no header row; each transaction element is one data row.
    """

    return _assemble(
        list(iter_xml_records(text, source=source)),
        has_header=False,
        date_format=date_format,
        category_policy=category_policy,
        source=source,
    )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def detect_format(path: Path, text: str) -> InputFormat:
    """Pick ``"xml"`` for ``.xml`` files or markup content, ``"csv"`` otherwise."""

    if path.suffix.lower() == ".xml" or text.lstrip().startswith("<"):
        return "xml"
    return "csv"


def read_text(path: str | PathLike[str]) -> str:
    """Read ``path`` as UTF-8 (a leading BOM is dropped)."""

    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as exc:
        raise LedgerLoadError(
            f"cannot read {p}: {exc.strerror or exc}", source=str(p)
        ) from exc
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise LedgerLoadError(f"{p} is not valid UTF-8: {exc}", source=str(p)) from exc


def load_file(
    path: str | PathLike[str],
    settings: LedgerSettings | None = None,
) -> Ledger:
    """Read and parse a ledger file.

    Raises :class:`LedgerLoadError` for fatal conditions; row-level problems
    are returned in :attr:`Ledger.errors`.
    """

    cfg = settings or LedgerSettings()
    p = Path(path)
    text = read_text(p)
    fmt = detect_format(p, text) if cfg.input_format == "auto" else cfg.input_format
    _logger.debug("Loading %s as %s", p, fmt)

    if fmt == "xml":
        return load_xml_text(
            text,
            date_format=cfg.date_format,
            category_policy=cfg.category_policy,
            source=str(p),
        )
    return load_csv_text(
        text,
        has_header=cfg.has_header,
        delimiter=cfg.delimiter,
        date_format=cfg.date_format,
        category_policy=cfg.category_policy,
        source=str(p),
    )


__all__ = [
    "LedgerLoadError",
    "detect_format",
    "iter_csv_records",
    "iter_xml_records",
    "load",
    "load_csv_text",
    "load_file",
    "load_xml_text",
    "read_text",
]
