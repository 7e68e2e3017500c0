"""Validated calculation snapshot for one quote."""

from types import MappingProxyType
from typing import Iterable, Mapping

from tabsettle.domain.entities import PaymentSelection, SessionItemSnapshot
from tabsettle.domain.errors import (
    ConflictError,
    CurrencyMismatchError,
    NotFoundError,
    ValidationError,
    duplicate_item,
    item_currency_mismatch,
    item_not_found,
    quantity_exceeds_remaining,
    quantity_not_positive,
)
from tabsettle.domain.money import validate_currency
from tabsettle.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentCalculationContext:
    """Session items indexed by id and payer selections consolidated per item.

    All exposed mappings are read-only and iterate in first-encounter order of
    the inputs: session item order for ``item_by_id`` and
    ``remaining_qty_by_item``, selection order for ``selected_qty_by_item``.
    Allocation tie-breaks and the order of paid items rely on this.
    """

    def __init__(
        self,
        currency: str,
        item_by_id: dict[str, SessionItemSnapshot],
        selected_qty_by_item: dict[str, int],
    ):
        """Initialize from already validated indices.

        Use ``create`` to build a context from raw inputs.
        """
        self._currency = currency
        self._item_by_id = MappingProxyType(dict(item_by_id))
        self._selected_qty_by_item = MappingProxyType(dict(selected_qty_by_item))
        self._remaining_qty_by_item = MappingProxyType(
            {item_id: item.remaining_quantity for item_id, item in item_by_id.items()}
        )

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def item_by_id(self) -> Mapping[str, SessionItemSnapshot]:
        return self._item_by_id

    @property
    def selected_qty_by_item(self) -> Mapping[str, int]:
        return self._selected_qty_by_item

    @property
    def remaining_qty_by_item(self) -> Mapping[str, int]:
        return self._remaining_qty_by_item

    @classmethod
    def create(
        cls,
        currency: str,
        session_items: Iterable[SessionItemSnapshot],
        selections: Iterable[PaymentSelection],
    ) -> "PaymentCalculationContext":
        """Create a validated context from session items and payer selections.

        Selections for the same item are summed; the first occurrence of an
        item id fixes its position.

        Args:
            currency: Currency every session item must be priced in
            session_items: Current session item snapshots
            selections: Payer selections (must not be empty)

        Returns:
            Immutable calculation context

        Raises:
            ValidationError: If selections are empty or a quantity is invalid
            CurrencyMismatchError: If an item is priced in another currency
            ConflictError: If two session items share an id
            NotFoundError: If a selection references an unknown item
        """
        validate_currency(currency)
        selections = list(selections)
        if not selections:
            raise ValidationError("selections must not be empty")

        item_by_id = cls._index_session_items(currency, session_items)
        selected_qty_by_item = cls._consolidate_selections(selections)
        cls._validate_selections(item_by_id, selected_qty_by_item)

        logger.debug(
            "Calculation context: %d session items, %d selected items",
            len(item_by_id),
            len(selected_qty_by_item),
        )
        return cls(currency, item_by_id, selected_qty_by_item)

    @staticmethod
    def _index_session_items(
        currency: str, session_items: Iterable[SessionItemSnapshot]
    ) -> dict[str, SessionItemSnapshot]:
        item_by_id: dict[str, SessionItemSnapshot] = {}
        for item in session_items:
            if item.unit_price.currency != currency:
                raise CurrencyMismatchError(
                    item_currency_mismatch(item.item_id, currency, item.unit_price.currency)
                )
            if item.item_id in item_by_id:
                raise ConflictError(duplicate_item(item.item_id))
            item_by_id[item.item_id] = item
        return item_by_id

    @staticmethod
    def _consolidate_selections(selections: list[PaymentSelection]) -> dict[str, int]:
        qty_by_item: dict[str, int] = {}
        for selection in selections:
            qty_by_item[selection.item_id] = (
                qty_by_item.get(selection.item_id, 0) + selection.quantity
            )
        return qty_by_item

    @staticmethod
    def _validate_selections(
        item_by_id: dict[str, SessionItemSnapshot], selected_qty_by_item: dict[str, int]
    ) -> None:
        for item_id, quantity in selected_qty_by_item.items():
            if quantity <= 0:
                raise ValidationError(quantity_not_positive(item_id, quantity))
            snapshot = item_by_id.get(item_id)
            if snapshot is None:
                raise NotFoundError(item_not_found(item_id))
            if quantity > snapshot.remaining_quantity:
                raise ValidationError(
                    quantity_exceeds_remaining(item_id, quantity, snapshot.remaining_quantity)
                )
