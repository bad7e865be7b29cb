import pytest

from expense_ledger import Category, canonicalize
from expense_ledger.categories import lookup, normalize_label


def test_every_member_round_trips_through_its_label():
    for c in Category:
        assert canonicalize(c.value) is c
        assert canonicalize(c.value.upper()) is c


@pytest.mark.parametrize(
    "raw",
    ["Grocery", "grocery", "GROCERY", "  grocery ", "\tGrOcErY\n"],
)
def test_case_and_whitespace_are_ignored(raw):
    assert canonicalize(raw) is Category.GROCERY


@pytest.mark.parametrize("raw", ["Yacht", "", "   ", None, "Groceries", "Rent!"])
def test_unrecognized_labels_fall_back_to_unknown(raw):
    assert canonicalize(raw) is Category.UNKNOWN


def test_lookup_distinguishes_unknown_from_unrecognized():
    assert lookup("unknown") is Category.UNKNOWN
    assert lookup("Yacht") is None
    assert lookup(None) is None


def test_normalize_label_collapses_internal_whitespace():
    assert normalize_label("  Foo \t  Bar ") == "foo bar"


def test_category_set_is_closed():
    assert len(Category) == 22
    assert list(Category)[-1] is Category.UNKNOWN
    assert str(Category.RESTAURANTS) == "Restaurants"
