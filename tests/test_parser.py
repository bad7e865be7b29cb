from datetime import date
from decimal import Decimal

import pytest

from expense_ledger import Category, Expense, ParseError, ParseErrorReason, parse_row
from expense_ledger.parser import FieldError, parse_amount, parse_date


def test_valid_row_builds_expense():
    result = parse_row(["2024-01-05", "12.5", "grocery", "milk"], 1)

    assert result == Expense(
        date=date(2024, 1, 5),
        amount=Decimal("12.50"),
        category=Category.GROCERY,
        description="milk",
        row_index=1,
    )
    assert str(result.amount) == "12.50"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7", "7.00"),
        ("+7.5", "7.50"),
        ("-3.25", "-3.25"),
        ("  100.00  ", "100.00"),
        ("0", "0.00"),
    ],
)
def test_parse_amount_accepts_signed_decimals(raw, expected):
    assert str(parse_amount(raw)) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "abc",
        "1,000.00",
        "1_000.00",
        "1e2",
        "1e999999",
        ".5",
        "5.",
        "12.345",
        "NaN",
        "Infinity",
        "-inf",
        "+-1",
        "\u0661\u0662",
    ],
)
def test_parse_amount_rejects_invalid(raw):
    with pytest.raises(FieldError) as excinfo:
        parse_amount(raw)
    assert excinfo.value.reason is ParseErrorReason.INVALID_AMOUNT


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_parse_amount_empty_is_missing(raw):
    with pytest.raises(FieldError) as excinfo:
        parse_amount(raw)
    assert excinfo.value.reason is ParseErrorReason.MISSING_FIELD


def test_parse_date_uses_configured_format():
    assert parse_date("05/01/2024", "%d/%m/%Y") == date(2024, 1, 5)
    with pytest.raises(FieldError) as excinfo:
        parse_date("2024-01-05", "%d/%m/%Y")
    assert excinfo.value.reason is ParseErrorReason.INVALID_DATE


@pytest.mark.parametrize(
    "fields, reason",
    [
        (["2024-01-05", "12.50", "Grocery"], ParseErrorReason.FIELD_COUNT),
        (["2024-01-05", "12.50", "Grocery", "milk", "extra"], ParseErrorReason.FIELD_COUNT),
        (["", "12.50", "Grocery", "milk"], ParseErrorReason.MISSING_FIELD),
        (["2024-01-05", " ", "Grocery", "milk"], ParseErrorReason.MISSING_FIELD),
        (["2024-02-30", "12.50", "Grocery", "milk"], ParseErrorReason.INVALID_DATE),
        (["yesterday", "12.50", "Grocery", "milk"], ParseErrorReason.INVALID_DATE),
        (["2024-01-05", "twelve", "Grocery", "milk"], ParseErrorReason.INVALID_AMOUNT),
    ],
)
def test_invalid_rows_report_reason(fields, reason):
    result = parse_row(fields, 3)

    assert isinstance(result, ParseError)
    assert result.reason is reason
    assert result.row_index == 3
    assert result.raw == tuple(fields)
    assert result.detail


def test_date_is_checked_before_amount():
    result = parse_row(["bad", "bad", "Grocery", ""], 1)
    assert isinstance(result, ParseError)
    assert result.reason is ParseErrorReason.INVALID_DATE


def test_unknown_category_falls_back_by_default():
    result = parse_row(["2024-01-06", "7.00", "Yacht", ""], 2)
    assert isinstance(result, Expense)
    assert result.category is Category.UNKNOWN


def test_error_policy_rejects_unrecognized_category():
    result = parse_row(["2024-01-06", "7.00", "Yacht", ""], 2, category_policy="error")
    assert isinstance(result, ParseError)
    assert result.reason is ParseErrorReason.UNKNOWN_CATEGORY

    # Empty categories are still allowed and map to Unknown.
    blank = parse_row(["2024-01-06", "7.00", "", ""], 3, category_policy="error")
    assert isinstance(blank, Expense)
    assert blank.category is Category.UNKNOWN


def test_description_is_kept_verbatim():
    desc = '  Café "Le Mur", table 4\nsplit  '
    result = parse_row(["2024-01-06", "7.00", "Restaurants", desc], 1)
    assert isinstance(result, Expense)
    assert result.description == desc


def test_parse_row_is_deterministic():
    fields = ["2024-01-05", "-4.10", "Shopping", "refund"]
    assert parse_row(fields, 1) == parse_row(list(fields), 1)


def test_amount_magnitude_is_capped():
    assert parse_amount("999999999999999.99") == Decimal("999999999999999.99")
    for raw in ("1000000000000000", "-1000000000000000.00", "1" + "0" * 26):
        with pytest.raises(FieldError, match="out of range") as excinfo:
            parse_amount(raw)
        assert excinfo.value.reason is ParseErrorReason.INVALID_AMOUNT


def test_payment_method_is_optional_and_trimmed():
    fields = ["2024-01-05", "1.00", "Books", ""]

    assert parse_row(fields, 1).payment_method is None
    assert parse_row(fields, 1, payment_method="  Visa ").payment_method == "Visa"
    assert parse_row(fields, 1, payment_method="   ").payment_method is None
    # Still four fields: the payment method is not a column of the row.
    bad = parse_row([*fields, "Visa"], 1)
    assert isinstance(bad, ParseError)
    assert bad.reason is ParseErrorReason.FIELD_COUNT
