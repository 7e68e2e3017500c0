"""Proportional allocation of money across items.

Pipeline used by ``ProportionalAllocator``:

1. raw share per item: ``total * cap / total_cap`` at working precision
2. round each share to cents via ``Money.of``
3. clamp each rounded share to its cap
4. hand any cent-level remainder to a ``RemainderDistributor``

Results are only deterministic when the caps mapping iterates in a
deterministic order; every intermediate dict here keeps the caps order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from tabsettle.domain.errors import (
    AllocationError,
    CurrencyMismatchError,
    ValidationError,
    currency_mismatch,
    missing_allocation,
    missing_cap,
)
from tabsettle.domain.money import ONE_CENT, Money, sum_money, work_divide
from tabsettle.utils.logging import get_logger

logger = get_logger(__name__)


def _require_currency(currency: str, value: Money, context: str) -> None:
    if value.currency != currency:
        raise CurrencyMismatchError(currency_mismatch(context, currency, value.currency))


class ProportionalShareCalculator:
    """Compute ``total * part / whole`` with a single final rounding."""

    def share_of_total(
        self, currency: str, total: Money, part: Money, whole: Money
    ) -> Money:
        """Return the share of ``total`` that ``part`` represents of ``whole``.

        Raises:
            CurrencyMismatchError: If any value is not in ``currency``
            ValidationError: If ``whole`` is zero
        """
        for label, value in (("total", total), ("part", part), ("whole", whole)):
            _require_currency(currency, value, f"proportional share ({label})")

        if whole.is_zero():
            raise ValidationError("whole must be > 0 for a proportional share")
        if total.is_zero() or part.is_zero():
            return Money.zero(currency)

        raw = work_divide(total.amount * part.amount, whole.amount)
        return Money.of(currency, raw)


@dataclass(frozen=True)
class Share:
    """Unrounded proportional share of one item."""

    item_id: str
    raw: Decimal


class RemainderDistributor(ABC):
    """Strategy for absorbing the rounding remainder of an allocation."""

    @abstractmethod
    def distribute(
        self,
        currency: str,
        remainder_amount: Decimal,
        caps: Mapping[str, Money],
        shares: Sequence[Share],
        current: dict[str, Money],
    ) -> dict[str, Money]:
        """Adjust ``current`` in place so it absorbs ``remainder_amount``.

        The remainder is a signed decimal amount (Money cannot be negative).
        Returns the same dict instance.
        """
        pass


@dataclass(frozen=True)
class _RankedShare:
    item_id: str
    rounding_error: Decimal


class LargestFractionalRemainderDistributor(RemainderDistributor):
    """Hand out cents to the shares with the largest rounding error first.

    Shares are ranked by ``raw - rounded``. Adding cents starts from the
    largest error (rounded down the most); removing cents starts from the
    smallest (rounded up the most). Ties are broken by ascending item id,
    compared by UTF-16 code units so ids outside the BMP sort the same way
    as in UTF-16 based platforms.

    Every cent restarts the scan from the top of the ranking, so one item
    with headroom can absorb several cents before the next one gets any.
    """

    def distribute(
        self,
        currency: str,
        remainder_amount: Decimal,
        caps: Mapping[str, Money],
        shares: Sequence[Share],
        current: dict[str, Money],
    ) -> dict[str, Money]:
        cents = self._to_cents(remainder_amount)
        if cents == 0:
            return current

        one_cent = Money.of(currency, ONE_CENT)
        ranked = self._rank(currency, shares)

        if cents > 0:
            logger.debug("Distributing +%d cent(s) across %d shares", cents, len(ranked))
            for _ in range(cents):
                self._add_one_cent(one_cent, caps, ranked, current)
        else:
            ranked_asc = sorted(
                ranked, key=lambda rs: (rs.rounding_error, _id_order(rs.item_id))
            )
            logger.debug("Distributing %d cent(s) across %d shares", cents, len(ranked))
            for _ in range(-cents):
                self._remove_one_cent(one_cent, ranked_asc, current)
        return current

    @staticmethod
    def _to_cents(remainder_amount: Decimal) -> int:
        cents = remainder_amount / ONE_CENT
        if cents != cents.to_integral_value():
            raise ValidationError(
                f"Remainder must be a whole number of cents, got {remainder_amount}"
            )
        return int(cents)

    @staticmethod
    def _rank(currency: str, shares: Sequence[Share]) -> list[_RankedShare]:
        ranked = []
        for share in shares:
            rounded = Money.of(currency, share.raw)
            ranked.append(_RankedShare(share.item_id, share.raw - rounded.amount))
        # Descending rounding error, then ascending item id.
        ranked.sort(key=lambda rs: (-rs.rounding_error, _id_order(rs.item_id)))
        return ranked

    @staticmethod
    def _add_one_cent(
        one_cent: Money,
        caps: Mapping[str, Money],
        ranked_desc: list[_RankedShare],
        current: dict[str, Money],
    ) -> None:
        for ranked in ranked_desc:
            now = _require_current(current, ranked.item_id)
            cap = caps.get(ranked.item_id)
            if cap is None:
                raise ValidationError(missing_cap(ranked.item_id))
            candidate = now.plus(one_cent)
            if candidate <= cap:
                current[ranked.item_id] = candidate
                return
        raise AllocationError(
            "Unable to distribute positive rounding remainder: every item is at its cap "
            f"({', '.join(rs.item_id for rs in ranked_desc)})"
        )

    @staticmethod
    def _remove_one_cent(
        one_cent: Money, ranked_asc: list[_RankedShare], current: dict[str, Money]
    ) -> None:
        for ranked in ranked_asc:
            now = _require_current(current, ranked.item_id)
            if now >= one_cent:
                current[ranked.item_id] = now.minus(one_cent)
                return
        raise AllocationError(
            "Unable to distribute negative rounding remainder: no item holds a cent "
            f"({', '.join(rs.item_id for rs in ranked_asc)})"
        )


def _id_order(item_id: str) -> bytes:
    """Sort key comparing item ids by UTF-16 code units."""
    return item_id.encode("utf-16-be", "surrogatepass")


def _require_current(current: dict[str, Money], item_id: str) -> Money:
    now = current.get(item_id)
    if now is None:
        raise ValidationError(missing_allocation(item_id))
    return now


class ProportionalAllocator:
    """Allocate a total across items proportionally to per-item caps.

    The caps act both as weights and as upper bounds: no item is ever
    allocated more than its cap, and the allocation sums exactly to the
    requested total.
    """

    def __init__(self, remainder_distributor: Optional[RemainderDistributor] = None):
        """Initialize allocator.

        Args:
            remainder_distributor: Remainder policy (defaults to largest
                fractional remainder first)
        """
        self.remainder_distributor = (
            remainder_distributor or LargestFractionalRemainderDistributor()
        )

    def allocate(
        self, currency: str, total_to_allocate: Money, caps: Mapping[str, Money]
    ) -> dict[str, Money]:
        """Allocate ``total_to_allocate`` across the keys of ``caps``.

        Args:
            currency: Currency of the total and of every cap
            total_to_allocate: Amount to spread
            caps: Per-item weight and upper bound, in iteration order

        Returns:
            Allocation per item id, in the iteration order of ``caps``

        Raises:
            CurrencyMismatchError: If any value is not in ``currency``
            ValidationError: If the total is non-zero and all caps are zero
            AllocationError: If the rounding remainder cannot be distributed
        """
        _require_currency(currency, total_to_allocate, "total to allocate")
        for item_id, cap in caps.items():
            _require_currency(currency, cap, f"cap for item '{item_id}'")

        if total_to_allocate.is_zero():
            return {item_id: Money.zero(currency) for item_id in caps}

        total_cap = sum_money(currency, caps.values(), "caps")
        if total_cap.is_zero():
            raise ValidationError(
                f"Total cap is zero; cannot allocate {total_to_allocate} proportionally"
            )

        shares = [
            Share(item_id, work_divide(total_to_allocate.amount * cap.amount, total_cap.amount))
            for item_id, cap in caps.items()
        ]
        rounded: dict[str, Money] = {}
        for share in shares:
            cap = caps[share.item_id]
            rounded[share.item_id] = Money.of(currency, share.raw).min(cap)

        remainder = total_to_allocate.amount - sum_money(currency, rounded.values()).amount
        if remainder == 0:
            return rounded

        return self.remainder_distributor.distribute(
            currency, remainder, caps, shares, rounded
        )
