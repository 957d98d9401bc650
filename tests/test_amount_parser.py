"""Tests for amount parsing."""

import pytest
from decimal import Decimal
from recurmatch.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", "123.45"),
        ("-15.99", "-15.99"),
        ("+20", "20"),
        ("$1,234.56", "1234.56"),
        ("-$50.00", "-50.00"),
        ("99.90 USD", "99.90"),
        ("(45.00)", "-45.00"),
        ("45.00-", "-45.00"),
        ("€ 10", "10"),
    ],
)
def test_parse_amount(text, expected):
    """Test supported amount formats."""
    assert parse_amount(text) == Decimal(expected)


@pytest.mark.parametrize("text", ["", "   ", "abc", "12.3.4", "NaN", "Infinity"])
def test_parse_amount_invalid(text):
    """Test that unparseable amounts raise ValueError."""
    with pytest.raises(ValueError):
        parse_amount(text)
