"""Money value object and the shared rounding policy.

Two precision tiers are used throughout the domain:

- intermediate math (divisions, proportional shares) runs in ``WORK_CONTEXT``,
  ten significant digits with ROUND_HALF_UP;
- final values are normalized to two decimals, ROUND_HALF_UP, exactly once,
  when they become a ``Money`` via ``Money.of``.
"""

import re
from dataclasses import dataclass
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from tabsettle.domain.errors import (
    CurrencyMismatchError,
    IllegalStateError,
    ValidationError,
    currency_mismatch,
)

# Working precision for intermediate calculations across the domain.
WORK_CONTEXT = Context(prec=10, rounding=ROUND_HALF_UP)

# One cent as a raw constant; wrap via Money.of.
ONE_CENT = Decimal("0.01")

SCALE = 2
_QUANTUM = Decimal(1).scaleb(-SCALE)
_CURRENCY_PATTERN = re.compile(r"[A-Z]{3}")

RawAmount = Union[Decimal, int, str]


def work_divide(dividend: Decimal, divisor: Decimal) -> Decimal:
    """Divide at working precision."""
    return WORK_CONTEXT.divide(dividend, divisor)


def validate_currency(currency: str) -> str:
    """Validate an uppercase three-letter currency code.

    Raises:
        ValidationError: If the code is not three uppercase letters
    """
    if not isinstance(currency, str) or not _CURRENCY_PATTERN.fullmatch(currency):
        raise ValidationError(
            f"Currency must be an uppercase ISO-4217 code, got {currency!r}"
        )
    return currency


def _to_decimal(amount: RawAmount) -> Decimal:
    if isinstance(amount, bool) or isinstance(amount, float):
        raise ValidationError(
            f"Money amount must be a Decimal, int or str, got {type(amount).__name__}"
        )
    if isinstance(amount, Decimal):
        return amount
    try:
        return Decimal(amount)
    except (InvalidOperation, TypeError) as e:
        raise ValidationError(f"Could not parse money amount {amount!r}") from e


def normalize_amount(amount: RawAmount) -> Decimal:
    """Round a raw amount to currency scale (2 decimals, ROUND_HALF_UP)."""
    value = _to_decimal(amount)
    if not value.is_finite():
        raise ValidationError(f"Money amount must be finite, got {value}")
    try:
        return value.quantize(_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        # More digits than the decimal context can hold at two decimals
        raise ValidationError(f"Money amount out of range: {value}") from e


@dataclass(frozen=True)
class Money:
    """Immutable non-negative amount in a single currency.

    The amount is always normalized to two decimals. Arithmetic and
    comparisons are only defined between values of the same currency.
    """

    currency: str
    amount: Decimal

    def __post_init__(self):
        validate_currency(self.currency)
        normalized = normalize_amount(self.amount)
        if normalized < 0:
            raise IllegalStateError(f"Money amount cannot be negative: {normalized}")
        # -0.00 after rounding a tiny negative
        object.__setattr__(self, "amount", normalized.copy_abs())

    @classmethod
    def of(cls, currency: str, amount: RawAmount) -> "Money":
        """Create a Money value, rounding the amount to two decimals."""
        return cls(currency, amount)

    @classmethod
    def zero(cls, currency: str) -> "Money":
        """Create a zero Money value."""
        return cls(currency, Decimal(0))

    def plus(self, other: "Money") -> "Money":
        """Return the sum of two same-currency values."""
        self._require_same_currency(other)
        return Money(self.currency, self.amount + other.amount)

    def minus(self, other: "Money") -> "Money":
        """Return the difference of two same-currency values.

        Raises:
            IllegalStateError: If the result would be negative
        """
        self._require_same_currency(other)
        result = self.amount - other.amount
        if result < 0:
            raise IllegalStateError(
                f"Money subtraction would result in a negative amount ({self} - {other})"
            )
        return Money(self.currency, result)

    def times(self, quantity: int) -> "Money":
        """Multiply by a non-negative whole quantity."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"quantity must be an integer, got {quantity!r}")
        if quantity < 0:
            raise ValidationError(f"quantity must be >= 0, got {quantity}")
        return Money(self.currency, self.amount * quantity)

    def compare_to(self, other: "Money") -> int:
        """Return -1, 0 or 1 comparing two same-currency values."""
        self._require_same_currency(other)
        if self.amount < other.amount:
            return -1
        if self.amount > other.amount:
            return 1
        return 0

    def is_zero(self) -> bool:
        """Return True if the amount is zero."""
        return self.amount == 0

    def min(self, other: "Money") -> "Money":
        """Return the smaller of two same-currency values."""
        return other if self.compare_to(other) > 0 else self

    def __lt__(self, other: "Money") -> bool:
        return self.compare_to(other) < 0

    def __le__(self, other: "Money") -> bool:
        return self.compare_to(other) <= 0

    def __gt__(self, other: "Money") -> bool:
        return self.compare_to(other) > 0

    def __ge__(self, other: "Money") -> bool:
        return self.compare_to(other) >= 0

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def _require_same_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise ValidationError(f"Expected Money, got {type(other).__name__}")
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                currency_mismatch("money operation", self.currency, other.currency)
            )


def sum_money(currency: str, values, context: str = "money sum") -> Money:
    """Sum Money values, requiring every value to use ``currency``."""
    total = Money.zero(currency)
    for value in values:
        if value.currency != currency:
            raise CurrencyMismatchError(
                currency_mismatch(context, currency, value.currency)
            )
        total = total.plus(value)
    return total
