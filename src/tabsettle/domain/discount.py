"""Discount intents and their resolution into concrete reductions.

A discount says *how* a reduction should be computed. ``DiscountCalculator``
turns it into a ``Money`` amount over a base and wraps that amount into a
session ``WriteOff`` or an ``ItemWriteOff``.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from tabsettle.domain.entities import (
    ItemWriteOff,
    WriteOff,
    WriteOffReason,
    normalize_note,
    require_reason,
)
from tabsettle.domain.errors import (
    CurrencyMismatchError,
    InvalidReductionError,
    ValidationError,
    currency_mismatch,
)
from tabsettle.domain.money import Money, RawAmount, normalize_amount, work_divide

ONE_HUNDRED = Decimal(100)


@dataclass(frozen=True)
class Percent:
    """Percentage discount, ``0 < value <= 100`` after rounding to two decimals."""

    value: Decimal
    reason: WriteOffReason
    note: Optional[str] = None

    def __post_init__(self):
        require_reason(self.reason)
        object.__setattr__(self, "value", self._normalize(self.value))
        object.__setattr__(self, "note", normalize_note(self.note, "Discount"))

    @staticmethod
    def _normalize(value: RawAmount) -> Decimal:
        normalized = normalize_amount(value)
        if normalized <= 0:
            raise ValidationError(f"percent must be > 0, got {normalized}")
        if normalized > ONE_HUNDRED:
            raise ValidationError(f"percent must be <= 100, got {normalized}")
        return normalized


@dataclass(frozen=True)
class FlatAmount:
    """Fixed-amount discount; the amount must be strictly positive."""

    amount: Money
    reason: WriteOffReason
    note: Optional[str] = None

    def __post_init__(self):
        require_reason(self.reason)
        if not isinstance(self.amount, Money):
            raise ValidationError(f"amount must be Money, got {self.amount!r}")
        if self.amount.is_zero():
            raise ValidationError("amount must be strictly greater than zero")
        object.__setattr__(self, "note", normalize_note(self.note, "Discount"))


Discount = Union[Percent, FlatAmount]


class DiscountCalculator:
    """Resolve discount intents into concrete write-off amounts."""

    def calculate_reduction(self, discount: Discount, base_amount: Money) -> Money:
        """Calculate the reduction a discount produces over a base amount.

        Args:
            discount: Percent or FlatAmount discount
            base_amount: Amount the discount applies to (must be > 0)

        Returns:
            Strictly positive reduction, never larger than ``base_amount``

        Raises:
            ValidationError: If the base is zero or the discount is unknown
            CurrencyMismatchError: If a flat amount uses another currency
            InvalidReductionError: If the reduction is zero or exceeds the base
        """
        if base_amount.is_zero():
            raise ValidationError("base_amount must be greater than zero")

        if isinstance(discount, Percent):
            reduction = self._percent_reduction(discount, base_amount)
        elif isinstance(discount, FlatAmount):
            reduction = self._flat_reduction(discount, base_amount)
        else:
            raise ValidationError(f"Unsupported discount type: {type(discount).__name__}")

        if reduction.is_zero():
            raise InvalidReductionError(
                f"Calculated reduction must be strictly greater than zero "
                f"(base {base_amount})"
            )
        if reduction > base_amount:
            raise InvalidReductionError(
                f"Calculated reduction {reduction} must not exceed base amount {base_amount}"
            )
        return reduction

    def to_session_write_off(self, discount: Discount, base_total: Money) -> WriteOff:
        """Resolve a discount into a session-level write-off."""
        reduction = self.calculate_reduction(discount, base_total)
        return WriteOff(reduction, discount.reason, discount.note)

    def to_item_write_off(
        self,
        discount: Discount,
        item_id: str,
        quantity: int,
        base_item_total: Money,
    ) -> ItemWriteOff:
        """Resolve a discount into a write-off for ``quantity`` units of one item.

        Args:
            discount: Discount intent
            item_id: Target item
            quantity: Quantity in scope (must be > 0)
            base_item_total: Unit price x quantity for the scoped units
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"quantity must be > 0 for item '{item_id}'")
        reduction = self.calculate_reduction(discount, base_item_total)
        return ItemWriteOff(item_id, quantity, reduction, discount.reason, discount.note)

    @staticmethod
    def _percent_reduction(discount: Percent, base_amount: Money) -> Money:
        raw = work_divide(base_amount.amount * discount.value, ONE_HUNDRED)
        return Money.of(base_amount.currency, raw)

    @staticmethod
    def _flat_reduction(discount: FlatAmount, base_amount: Money) -> Money:
        if discount.amount.currency != base_amount.currency:
            raise CurrencyMismatchError(
                currency_mismatch(
                    "discount amount", base_amount.currency, discount.amount.currency
                )
            )
        return discount.amount
