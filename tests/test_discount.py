"""Tests for discount intents and DiscountCalculator."""

from decimal import Decimal

import pytest

from tabsettle.domain.discount import FlatAmount, Percent
from tabsettle.domain.entities import ItemWriteOff, WriteOff, WriteOffReason
from tabsettle.domain.errors import (
    CurrencyMismatchError,
    InvalidReductionError,
    ValidationError,
)
from tabsettle.domain.money import Money


class TestPercent:
    """Tests for the Percent discount."""

    def test_value_is_normalized(self):
        assert Percent("10", WriteOffReason.DISCOUNT).value == Decimal("10.00")
        assert Percent(Decimal("12.345"), WriteOffReason.DISCOUNT).value == Decimal("12.35")

    @pytest.mark.parametrize("value", ["0", "0.004", "-5", "100.01"])
    def test_value_out_of_range(self, value):
        """Test that percent must be in (0, 100] after rounding."""
        with pytest.raises(ValidationError):
            Percent(value, WriteOffReason.DISCOUNT)

    def test_hundred_percent_is_allowed(self):
        assert Percent("100", WriteOffReason.PROMOTION).value == Decimal("100.00")

    def test_note_is_trimmed(self):
        assert Percent("5", WriteOffReason.PROMOTION, "  hh  ").note == "hh"


class TestFlatAmount:
    """Tests for the FlatAmount discount."""

    def test_amount_must_be_positive(self, money):
        with pytest.raises(ValidationError):
            FlatAmount(money("0"), WriteOffReason.DISCOUNT)

    def test_amount_must_be_money(self):
        with pytest.raises(ValidationError):
            FlatAmount(Decimal("1.00"), WriteOffReason.DISCOUNT)


class TestDiscountCalculator:
    """Tests for resolving discounts into reductions."""

    def test_percent_reduction(self, discount_calculator, money):
        reduction = discount_calculator.calculate_reduction(
            Percent("10", WriteOffReason.DISCOUNT), money("42.50")
        )

        assert reduction == money("4.25")

    def test_percent_reduction_rounds_once(self, discount_calculator, money):
        """Test that 33.33% of 10.00 rounds to 3.33."""
        reduction = discount_calculator.calculate_reduction(
            Percent("33.33", WriteOffReason.DISCOUNT), money("10.00")
        )

        assert reduction == money("3.33")

    def test_full_percent_equals_base(self, discount_calculator, money):
        reduction = discount_calculator.calculate_reduction(
            Percent("100", WriteOffReason.COMPENSATION), money("4.50")
        )

        assert reduction == money("4.50")

    def test_percent_rounding_to_zero_fails(self, discount_calculator, money):
        """Test that a reduction rounding to zero is rejected."""
        with pytest.raises(InvalidReductionError):
            discount_calculator.calculate_reduction(
                Percent("0.01", WriteOffReason.DISCOUNT), money("0.10")
            )

    def test_flat_reduction(self, discount_calculator, money):
        reduction = discount_calculator.calculate_reduction(
            FlatAmount(money("5.00"), WriteOffReason.DISCOUNT), money("42.50")
        )

        assert reduction == money("5.00")

    def test_flat_reduction_exceeding_base(self, discount_calculator, money):
        with pytest.raises(InvalidReductionError) as excinfo:
            discount_calculator.calculate_reduction(
                FlatAmount(money("5.00"), WriteOffReason.DISCOUNT), money("4.00")
            )

        assert "must not exceed" in str(excinfo.value)

    def test_flat_reduction_currency_mismatch(self, discount_calculator, money):
        with pytest.raises(CurrencyMismatchError):
            discount_calculator.calculate_reduction(
                FlatAmount(Money.of("USD", "1.00"), WriteOffReason.DISCOUNT), money("4.00")
            )

    def test_zero_base_fails(self, discount_calculator, money):
        with pytest.raises(ValidationError):
            discount_calculator.calculate_reduction(
                Percent("10", WriteOffReason.DISCOUNT), money("0")
            )

    def test_invalid_reduction_is_a_validation_error(self):
        assert issubclass(InvalidReductionError, ValidationError)

    def test_to_session_write_off(self, discount_calculator, money):
        """Test wrapping a reduction into a session write-off."""
        write_off = discount_calculator.to_session_write_off(
            Percent("10", WriteOffReason.PROMOTION, "happy hour"), money("20.00")
        )

        assert write_off == WriteOff(money("2.00"), WriteOffReason.PROMOTION, "happy hour")

    def test_to_item_write_off(self, discount_calculator, money):
        """Test wrapping a reduction into an item write-off."""
        write_off = discount_calculator.to_item_write_off(
            FlatAmount(money("1.50"), WriteOffReason.COMPENSATION),
            "beer",
            2,
            money("9.00"),
        )

        assert write_off == ItemWriteOff(
            "beer", 2, money("1.50"), WriteOffReason.COMPENSATION, None
        )

    def test_to_item_write_off_requires_quantity(self, discount_calculator, money):
        with pytest.raises(ValidationError):
            discount_calculator.to_item_write_off(
                Percent("10", WriteOffReason.DISCOUNT), "beer", 0, money("9.00")
            )
