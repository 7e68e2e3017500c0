"""Tests for proportional allocation and remainder distribution."""

from decimal import Decimal

import pytest

from tabsettle.domain.allocation import (
    LargestFractionalRemainderDistributor,
    ProportionalAllocator,
    ProportionalShareCalculator,
    RemainderDistributor,
    Share,
)
from tabsettle.domain.errors import AllocationError, CurrencyMismatchError, ValidationError
from tabsettle.domain.money import Money, sum_money


def _caps(money, **amounts):
    return {item_id: money(amount) for item_id, amount in amounts.items()}


def _amounts(allocation):
    return {item_id: str(value.amount) for item_id, value in allocation.items()}


class TestProportionalShareCalculator:
    """Tests for share_of_total."""

    def test_share(self, money):
        share = ProportionalShareCalculator().share_of_total(
            "EUR", money("3.00"), money("10.00"), money("30.00")
        )

        assert share == money("1.00")

    def test_share_rounds_once(self, money):
        """Test that 1.00 * 1 / 3 rounds to 0.33."""
        share = ProportionalShareCalculator().share_of_total(
            "EUR", money("1.00"), money("1.00"), money("3.00")
        )

        assert share == money("0.33")

    def test_zero_part_or_total(self, money):
        calculator = ProportionalShareCalculator()

        assert calculator.share_of_total("EUR", money("0"), money("1"), money("3")).is_zero()
        assert calculator.share_of_total("EUR", money("5"), money("0"), money("3")).is_zero()

    def test_zero_whole(self, money):
        with pytest.raises(ValidationError):
            ProportionalShareCalculator().share_of_total(
                "EUR", money("1.00"), money("1.00"), money("0")
            )

    def test_currency_mismatch(self, money):
        with pytest.raises(CurrencyMismatchError) as excinfo:
            ProportionalShareCalculator().share_of_total(
                "EUR", money("1.00"), Money.of("USD", "1.00"), money("3.00")
            )

        assert "part" in str(excinfo.value)


class TestProportionalAllocator:
    """Tests for ProportionalAllocator."""

    def test_exact_split(self, money):
        allocation = ProportionalAllocator().allocate(
            "EUR", money("3.00"), _caps(money, a="10.00", b="20.00")
        )

        assert _amounts(allocation) == {"a": "1.00", "b": "2.00"}

    def test_tie_break_compares_utf16_code_units(self, money):
        """Test that an astral id sorts before U+FF01 on both remainder paths."""
        added = ProportionalAllocator().allocate(
            "EUR",
            money("0.01"),
            {"！": money("1.00"), "\U0001f600": money("1.00"), "｀": money("1.00")},
        )
        removed = ProportionalAllocator().allocate(
            "EUR", money("0.01"), {"！": money("1.00"), "\U0001f600": money("1.00")}
        )

        assert _amounts(added) == {"！": "0.00", "\U0001f600": "0.01", "｀": "0.00"}
        assert _amounts(removed) == {"！": "0.01", "\U0001f600": "0.00"}

    def test_single_cent_goes_to_smallest_id_on_tie(self, money):
        """Test that equal rounding errors are broken by ascending item id."""
        caps = {"c": money("1.00"), "a": money("1.00"), "b": money("1.00")}

        allocation = ProportionalAllocator().allocate("EUR", money("0.01"), caps)

        assert _amounts(allocation) == {"c": "0.00", "a": "0.01", "b": "0.00"}
        # Caps order is kept in the result.
        assert list(allocation) == ["c", "a", "b"]

    def test_negative_remainder_removed_from_smallest_id_on_tie(self, money):
        """Test that over-rounding is corrected starting from the smallest id."""
        allocation = ProportionalAllocator().allocate(
            "EUR", money("0.02"), _caps(money, b="1.00", c="1.00", a="1.00")
        )

        assert _amounts(allocation) == {"b": "0.01", "c": "0.01", "a": "0.00"}

    def test_rescan_from_top_for_each_cent(self, money):
        """Test that every cent restarts from the best-ranked item."""
        caps = {item_id: money("1.00") for item_id in "abcdefg"}

        allocation = ProportionalAllocator().allocate("EUR", money("0.03"), caps)

        assert allocation["a"] == money("0.03")
        assert all(allocation[item_id].is_zero() for item_id in "bcdefg")

    def test_negative_remainder_skips_items_without_a_cent(self, money):
        caps = {item_id: money("1.00") for item_id in "abcde"}

        allocation = ProportionalAllocator().allocate("EUR", money("0.03"), caps)

        assert _amounts(allocation) == {
            "a": "0.00",
            "b": "0.00",
            "c": "0.01",
            "d": "0.01",
            "e": "0.01",
        }

    def test_largest_fractional_remainder_wins(self, money):
        """Test that the share rounded down the most gets the cent."""
        # raw shares 0.012, 0.024, 0.024 round to 0.01, 0.02, 0.02
        allocation = ProportionalAllocator().allocate(
            "EUR", money("0.06"), _caps(money, a="1.00", b="2.00", c="2.00")
        )

        assert _amounts(allocation) == {"a": "0.01", "b": "0.03", "c": "0.02"}

    def test_smallest_fractional_remainder_gives_back(self, money):
        """Test that the share rounded up the most loses the cent."""
        # raw shares 0.008, 0.016, 0.016 round to 0.01, 0.02, 0.02
        allocation = ProportionalAllocator().allocate(
            "EUR", money("0.04"), _caps(money, a="1.00", b="2.00", c="2.00")
        )

        assert _amounts(allocation) == {"a": "0.01", "b": "0.01", "c": "0.02"}

    @pytest.mark.parametrize(
        "total, caps",
        [
            ("10.00", {"a": "3.33", "b": "3.33", "c": "3.34"}),
            ("0.07", {"a": "0.05", "b": "0.05", "c": "0.05"}),
            ("5.55", {"x": "9.99", "y": "0.01", "z": "1.23"}),
            ("1.00", {"a": "0.01", "b": "0.99"}),
            ("12.34", {"a": "12.34"}),
        ],
    )
    def test_conserves_total_and_respects_caps(self, money, total, caps):
        """Test that the allocation sums to the total and stays within caps."""
        cap_money = {item_id: money(amount) for item_id, amount in caps.items()}

        allocation = ProportionalAllocator().allocate("EUR", money(total), cap_money)

        assert sum_money("EUR", allocation.values()) == money(total)
        for item_id, value in allocation.items():
            assert value <= cap_money[item_id]

    def test_deterministic(self, money):
        caps = _caps(money, a="3.33", b="3.33", c="3.34")
        allocator = ProportionalAllocator()

        first = allocator.allocate("EUR", money("1.00"), caps)
        second = allocator.allocate("EUR", money("1.00"), dict(caps))

        assert first == second

    def test_zero_total(self, money):
        allocation = ProportionalAllocator().allocate(
            "EUR", money("0"), _caps(money, a="1.00", b="0.00")
        )

        assert _amounts(allocation) == {"a": "0.00", "b": "0.00"}

    def test_zero_caps_with_positive_total(self, money):
        with pytest.raises(ValidationError):
            ProportionalAllocator().allocate("EUR", money("1.00"), _caps(money, a="0", b="0"))

    def test_cap_currency_mismatch(self, money):
        with pytest.raises(CurrencyMismatchError):
            ProportionalAllocator().allocate(
                "EUR", money("1.00"), {"a": Money.of("USD", "1.00")}
            )

    def test_custom_remainder_distributor(self, money):
        """Test that the remainder policy can be swapped."""

        class RecordingDistributor(RemainderDistributor):
            def __init__(self):
                self.calls = []

            def distribute(self, currency, remainder_amount, caps, shares, current):
                self.calls.append(remainder_amount)
                current["b"] = current["b"].plus(Money.of(currency, remainder_amount))
                return current

        distributor = RecordingDistributor()
        allocation = ProportionalAllocator(distributor).allocate(
            "EUR", money("0.01"), _caps(money, a="1.00", b="1.00", c="1.00")
        )

        assert distributor.calls == [Decimal("0.01")]
        assert _amounts(allocation) == {"a": "0.00", "b": "0.01", "c": "0.00"}


class TestLargestFractionalRemainderDistributor:
    """Tests for the default remainder policy."""

    def test_skips_items_at_cap(self, money):
        """Test that a capped item is passed over for the next one."""
        shares = [Share("a", Decimal("0.004")), Share("b", Decimal("0.001"))]
        current = {"a": money("0"), "b": money("0")}

        result = LargestFractionalRemainderDistributor().distribute(
            "EUR", Decimal("0.02"), _caps(money, a="0.01", b="1.00"), shares, current
        )

        assert result is current
        assert _amounts(result) == {"a": "0.01", "b": "0.01"}

    def test_all_items_capped(self, money):
        shares = [Share("a", Decimal("0")), Share("b", Decimal("0"))]

        with pytest.raises(AllocationError):
            LargestFractionalRemainderDistributor().distribute(
                "EUR",
                Decimal("0.01"),
                _caps(money, a="0", b="0"),
                shares,
                {"a": money("0"), "b": money("0")},
            )

    def test_nothing_to_remove(self, money):
        shares = [Share("a", Decimal("0"))]

        with pytest.raises(AllocationError):
            LargestFractionalRemainderDistributor().distribute(
                "EUR", Decimal("-0.01"), _caps(money, a="1.00"), shares, {"a": money("0")}
            )

    def test_missing_cap(self, money):
        shares = [Share("a", Decimal("0.004"))]

        with pytest.raises(ValidationError) as excinfo:
            LargestFractionalRemainderDistributor().distribute(
                "EUR", Decimal("0.01"), {}, shares, {"a": money("0")}
            )

        assert "Missing cap for item 'a'" in str(excinfo.value)

    def test_missing_current_allocation(self, money):
        shares = [Share("a", Decimal("0.004"))]

        with pytest.raises(ValidationError):
            LargestFractionalRemainderDistributor().distribute(
                "EUR", Decimal("0.01"), _caps(money, a="1.00"), shares, {}
            )

    def test_remainder_must_be_whole_cents(self, money):
        with pytest.raises(ValidationError):
            LargestFractionalRemainderDistributor().distribute(
                "EUR", Decimal("0.005"), _caps(money, a="1.00"), [], {"a": money("0")}
            )

    def test_zero_remainder_is_a_no_op(self, money):
        current = {"a": money("0.50")}

        result = LargestFractionalRemainderDistributor().distribute(
            "EUR", Decimal("0.00"), _caps(money, a="1.00"), [], current
        )

        assert _amounts(result) == {"a": "0.50"}
