"""Check amount calculator: quote a check from session state and a selection."""

from typing import Iterable, Mapping, Optional, Sequence

from tabsettle.domain.allocation import ProportionalAllocator, ProportionalShareCalculator
from tabsettle.domain.calculation_context import PaymentCalculationContext
from tabsettle.domain.entities import (
    CheckQuote,
    ItemWriteOff,
    PaidItem,
    PaymentSelection,
    SessionItemSnapshot,
    WriteOff,
)
from tabsettle.domain.errors import (
    NotFoundError,
    NothingPayableError,
    item_not_found,
    zero_payable_item,
)
from tabsettle.domain.item_write_off_allocation import ItemWriteOffAllocation
from tabsettle.domain.money import Money, sum_money
from tabsettle.utils.logging import get_logger

logger = get_logger(__name__)


class CheckAmountCalculator:
    """Service for quoting the amount and allocation of a check.

    Rules, in order:

    1. Selections must not exceed remaining quantities.
    2. Item write-offs are applied first, per item and quantity.
    3. Session write-offs are applied proportionally: the check carries the
       share of them that its net amount represents of the net outstanding
       balance, spread over the selected items.
    4. Rounding remainders go to the largest fractional remainder first.

    The calculator is stateless and performs no I/O.
    """

    def __init__(
        self,
        proportional_allocator: Optional[ProportionalAllocator] = None,
        share_calculator: Optional[ProportionalShareCalculator] = None,
    ):
        """Initialize calculator.

        Args:
            proportional_allocator: Allocator for session write-offs
            share_calculator: Calculator for this check's share of them
        """
        self.proportional_allocator = proportional_allocator or ProportionalAllocator()
        self.share_calculator = share_calculator or ProportionalShareCalculator()

    def quote(
        self,
        currency: str,
        session_items: Sequence[SessionItemSnapshot],
        selections: Sequence[PaymentSelection],
        item_write_offs: Iterable[ItemWriteOff] = (),
        session_write_offs: Iterable[WriteOff] = (),
    ) -> CheckQuote:
        """Quote paying the selected items given the session's payable state.

        Args:
            currency: Session currency
            session_items: Snapshot of payable items (unit price, remaining qty)
            selections: Payer selections (item id and quantity)
            item_write_offs: Item-scoped write-offs, applied first
            session_write_offs: Session-level write-offs, applied proportionally

        Returns:
            CheckQuote with the total and one PaidItem per selected item, in
            selection order

        Raises:
            ValidationError: If selections or inputs are invalid
            NotFoundError: If a selection references an unknown item
            NothingPayableError: If write-offs leave nothing to charge
            AllocationError: If a rounding remainder cannot be distributed
        """
        ctx = PaymentCalculationContext.create(currency, session_items, selections)

        total_session_write_off = sum_money(
            ctx.currency,
            (write_off.amount for write_off in session_write_offs),
            "session write-offs",
        )

        gross_remaining_by_item = self._gross_remaining(ctx)
        gross_selected_by_item = self._gross_selected(ctx)

        item_write_off_allocation = ItemWriteOffAllocation.from_write_offs(
            ctx.currency, item_write_offs
        )

        net_selected_by_item = _subtract_per_item(
            gross_selected_by_item,
            item_write_off_allocation.allocate_to_selected(ctx, gross_selected_by_item),
        )
        for item_id, net_selected in net_selected_by_item.items():
            if net_selected.is_zero():
                raise NothingPayableError(zero_payable_item(item_id))
        total_net_selected = sum_money(ctx.currency, net_selected_by_item.values())
        if total_net_selected.is_zero():
            raise NothingPayableError(
                "Total net selected amount is zero; cannot create a check quote"
            )

        net_remaining_by_item = _subtract_per_item(
            gross_remaining_by_item,
            item_write_off_allocation.allocate_to_remaining(ctx, gross_remaining_by_item),
        )
        total_net_remaining = sum_money(ctx.currency, net_remaining_by_item.values())
        if total_net_remaining.is_zero():
            raise NothingPayableError(
                "Total net remaining amount is zero; cannot apply session write-offs"
            )

        # Remaining quantities include the selected ones, so the net remaining
        # total is the whole outstanding balance.
        check_share = self.share_calculator.share_of_total(
            ctx.currency, total_session_write_off, total_net_selected, total_net_remaining
        )
        session_write_off_by_item = self.proportional_allocator.allocate(
            ctx.currency, check_share, net_selected_by_item
        )
        paid_amount_by_item = _subtract_per_item(
            net_selected_by_item, session_write_off_by_item
        )

        quote = self._to_check_quote(ctx, paid_amount_by_item)
        logger.debug(
            "Quoted %s for %d item(s) (session write-off share %s of %s)",
            quote.check_amount,
            len(quote.paid_items),
            check_share,
            total_session_write_off,
        )
        return quote

    def gross_selected_amount(
        self,
        currency: str,
        session_items: Sequence[SessionItemSnapshot],
        selections: Sequence[PaymentSelection],
    ) -> Money:
        """Return the gross amount of a selection before any write-off.

        Raises:
            NotFoundError: If a selection references an unknown item
        """
        item_by_id = {item.item_id: item for item in session_items}
        total = Money.zero(currency)
        for selection in selections:
            item = item_by_id.get(selection.item_id)
            if item is None:
                raise NotFoundError(item_not_found(selection.item_id))
            total = total.plus(item.gross_amount_for(selection.quantity))
        return total

    @staticmethod
    def _gross_remaining(ctx: PaymentCalculationContext) -> dict[str, Money]:
        return {
            item_id: item.gross_amount_for(item.remaining_quantity)
            for item_id, item in ctx.item_by_id.items()
        }

    @staticmethod
    def _gross_selected(ctx: PaymentCalculationContext) -> dict[str, Money]:
        return {
            item_id: ctx.item_by_id[item_id].gross_amount_for(quantity)
            for item_id, quantity in ctx.selected_qty_by_item.items()
        }

    @staticmethod
    def _to_check_quote(
        ctx: PaymentCalculationContext, paid_amount_by_item: Mapping[str, Money]
    ) -> CheckQuote:
        paid_items = []
        for item_id, quantity in ctx.selected_qty_by_item.items():
            paid_amount = paid_amount_by_item.get(item_id)
            if paid_amount is None or paid_amount.is_zero():
                raise NothingPayableError(zero_payable_item(item_id))
            snapshot = ctx.item_by_id[item_id]
            paid_items.append(PaidItem(item_id, quantity, snapshot.unit_price, paid_amount))

        check_amount = sum_money(ctx.currency, paid_amount_by_item.values())
        if check_amount.is_zero():
            raise NothingPayableError("Check amount is zero; cannot create a check quote")
        return CheckQuote(check_amount, tuple(paid_items))


def _subtract_per_item(
    left: Mapping[str, Money], right: Mapping[str, Money]
) -> dict[str, Money]:
    result = {}
    for item_id, value in left.items():
        reduction = right.get(item_id)
        result[item_id] = value if reduction is None else value.minus(reduction)
    return result
