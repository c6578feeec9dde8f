"""
Tests for money amount parsing
"""
import pytest
from decimal import Decimal

from bookkeeper.utils.validation import parse_amount


def test_comma_separator_is_normalized():
    assert parse_amount(" 100,50 ") == Decimal("100.50")


def test_negative_amounts_allowed_when_asked():
    assert parse_amount("-15000", positive=False) == Decimal("-15000")
    assert parse_amount("0", positive=False) == Decimal("0")


@pytest.mark.parametrize("value", ["abc", "1.001", "1e3", "", "NaN", "1.2.3"])
def test_invalid_amounts(value):
    with pytest.raises(ValueError, match="Invalid amount"):
        parse_amount(value)


def test_positive_amount_required_by_default():
    assert parse_amount("0,01") == Decimal("0.01")
    with pytest.raises(ValueError, match="greater than zero"):
        parse_amount("0")
    with pytest.raises(ValueError, match="greater than zero"):
        parse_amount("-3")
