"""Tests for amount parsing."""

from decimal import Decimal

import pytest

from tabsettle.utils.amount_parser import parse_amount


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("12.50", "12.50"),
            ("  7 ", "7"),
            ("€12.50", "12.50"),
            ("$1,234.56", "1234.56"),
            ("12.50 EUR", "12.50"),
            ("0.005", "0.005"),
        ],
    )
    def test_formats(self, raw, expected):
        assert parse_amount(raw) == Decimal(expected)

    @pytest.mark.parametrize("raw", ["-12.50", "(12.50)"])
    def test_negative_amounts_are_rejected(self, raw):
        with pytest.raises(ValueError) as excinfo:
            parse_amount(raw)

        assert "Negative" in str(excinfo.value)

    @pytest.mark.parametrize("raw", ["", "   ", "abc", "NaN", "Infinity", "1.2.3"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_amount(raw)

    def test_non_string(self):
        with pytest.raises(ValueError):
            parse_amount(None)
