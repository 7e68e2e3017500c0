"""Allocation of item-scoped write-offs to a quantity scope."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from tabsettle.domain.calculation_context import PaymentCalculationContext
from tabsettle.domain.entities import ItemWriteOff
from tabsettle.domain.errors import (
    CurrencyMismatchError,
    ValidationError,
    currency_mismatch,
    missing_cap,
)
from tabsettle.domain.money import Money, validate_currency, work_divide


@dataclass(frozen=True)
class AggregatedItemWriteOff:
    """All write-offs of one item summed together."""

    total_amount: Money
    total_quantity: int

    def merge(self, other: "AggregatedItemWriteOff") -> "AggregatedItemWriteOff":
        return AggregatedItemWriteOff(
            self.total_amount.plus(other.total_amount),
            self.total_quantity + other.total_quantity,
        )

    @property
    def per_unit_amount(self) -> Decimal:
        """Per-unit reduction at working precision (not rounded to cents)."""
        return work_divide(self.total_amount.amount, Decimal(self.total_quantity))


class ItemWriteOffAllocation:
    """Spread aggregated item write-offs over selected or remaining quantities.

    For each item in the requested scope the allocation is
    ``per_unit x min(scope_qty, written_off_qty)``, rounded once and clamped
    to the item's gross cap for that scope. Items without write-offs, or
    with a scope quantity of zero, get a zero allocation.
    """

    def __init__(self, currency: str, aggregated_by_item: dict[str, AggregatedItemWriteOff]):
        self.currency = currency
        self.aggregated_by_item = aggregated_by_item

    @classmethod
    def from_write_offs(
        cls, currency: str, item_write_offs: Iterable[ItemWriteOff]
    ) -> "ItemWriteOffAllocation":
        """Aggregate item write-offs per item id, summing amounts and quantities.

        Raises:
            CurrencyMismatchError: If a write-off is not in ``currency``
        """
        validate_currency(currency)
        aggregated: dict[str, AggregatedItemWriteOff] = {}
        for write_off in item_write_offs:
            if write_off.amount.currency != currency:
                raise CurrencyMismatchError(
                    currency_mismatch(
                        f"item write-offs for item '{write_off.item_id}'",
                        currency,
                        write_off.amount.currency,
                    )
                )
            entry = AggregatedItemWriteOff(write_off.amount, write_off.quantity)
            previous = aggregated.get(write_off.item_id)
            aggregated[write_off.item_id] = entry if previous is None else previous.merge(entry)
        return cls(currency, aggregated)

    def allocate_to_selected(
        self, ctx: PaymentCalculationContext, gross_selected_by_item: Mapping[str, Money]
    ) -> dict[str, Money]:
        """Allocate write-offs to the payer-selected quantities."""
        return self._allocate_by_quantity(ctx.selected_qty_by_item, gross_selected_by_item)

    def allocate_to_remaining(
        self, ctx: PaymentCalculationContext, gross_remaining_by_item: Mapping[str, Money]
    ) -> dict[str, Money]:
        """Allocate write-offs to the remaining (unpaid) quantities."""
        return self._allocate_by_quantity(ctx.remaining_qty_by_item, gross_remaining_by_item)

    def _allocate_by_quantity(
        self, qty_by_item: Mapping[str, int], gross_cap_by_item: Mapping[str, Money]
    ) -> dict[str, Money]:
        result: dict[str, Money] = {}
        for item_id, scope_qty in qty_by_item.items():
            cap = gross_cap_by_item.get(item_id)
            if cap is None:
                raise ValidationError(missing_cap(item_id))
            result[item_id] = self._allocation_for(item_id, scope_qty, cap)
        return result

    def _allocation_for(self, item_id: str, scope_qty: int, cap: Money) -> Money:
        if scope_qty <= 0:
            return Money.zero(self.currency)

        aggregated = self.aggregated_by_item.get(item_id)
        if aggregated is None:
            return Money.zero(self.currency)

        alloc_qty = min(scope_qty, aggregated.total_quantity)
        computed = Money.of(self.currency, aggregated.per_unit_amount * alloc_qty)
        return computed.min(cap)
