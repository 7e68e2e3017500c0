"""Session snapshot file import.

A session file is a JSON document describing one tab::

    {
        "currency": "EUR",
        "items": [
            {"id": "beer", "unit_price": "4.50", "remaining_quantity": 3}
        ],
        "item_write_offs": [
            {"item_id": "beer", "quantity": 1, "amount": "4.50",
             "reason": "COMPENSATION", "note": "spilled"}
        ],
        "write_offs": [{"amount": "2.00", "reason": "ADMIN_ADJUSTMENT"}],
        "discounts": [
            {"percent": "10", "reason": "PROMOTION"},
            {"amount": "1.00", "reason": "DISCOUNT", "item_id": "beer", "quantity": 2}
        ]
    }

Only ``items`` is required. Discounts are resolved into write-offs when the
file is loaded: session discounts against the gross remaining total of all
items, item discounts against ``unit_price x quantity`` (quantity defaults to
the item's remaining quantity).
"""

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from tabsettle.domain.discount import Discount, DiscountCalculator, FlatAmount, Percent
from tabsettle.domain.entities import (
    ItemWriteOff,
    SessionItemSnapshot,
    SessionState,
    WriteOff,
    WriteOffReason,
)
from tabsettle.domain.errors import (
    CurrencyMismatchError,
    NotFoundError,
    ValidationError,
    currency_mismatch,
)
from tabsettle.domain.money import Money, sum_money
from tabsettle.utils.amount_parser import parse_amount
from tabsettle.utils.logging import get_logger

logger = get_logger(__name__)


class SessionImportService:
    """Service for loading session snapshot files."""

    def __init__(self, currency: str, discount_calculator: Optional[DiscountCalculator] = None):
        """Initialize session import service.

        Args:
            currency: Application currency; the file must not declare another one
            discount_calculator: Resolver for the file's discounts
        """
        self.currency = currency
        self.discount_calculator = discount_calculator or DiscountCalculator()

    def load_session(self, session_file_path: str) -> SessionState:
        """Load a session file.

        Args:
            session_file_path: Path to the JSON session file

        Returns:
            SessionState with items, item write-offs and session write-offs

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValidationError: If the document is malformed
            CurrencyMismatchError: If the file declares another currency
        """
        path = Path(session_file_path)
        if not path.exists():
            raise FileNotFoundError(f"Session file not found: {session_file_path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Session file is not valid JSON: {e}") from e

        state = self.parse_session(document)
        logger.info(
            "Loaded session file %s: %d items, %d item write-offs, %d write-offs",
            path,
            len(state.items),
            len(state.item_write_offs),
            len(state.write_offs),
        )
        return state

    def parse_session(self, document: Any) -> SessionState:
        """Build a SessionState from an already decoded document."""
        if not isinstance(document, dict):
            raise ValidationError("Session document must be a JSON object")

        declared = document.get("currency")
        if declared is not None and declared != self.currency:
            raise CurrencyMismatchError(
                currency_mismatch("session file", self.currency, str(declared))
            )

        items = tuple(
            self._parse_item(entry, f"items[{index}]")
            for index, entry in enumerate(self._list(document, "items", required=True))
        )
        item_write_offs = [
            self._parse_item_write_off(entry, f"item_write_offs[{index}]")
            for index, entry in enumerate(self._list(document, "item_write_offs"))
        ]
        write_offs = [
            self._parse_write_off(entry, f"write_offs[{index}]")
            for index, entry in enumerate(self._list(document, "write_offs"))
        ]

        item_by_id = {item.item_id: item for item in items}
        for index, entry in enumerate(self._list(document, "discounts")):
            location = f"discounts[{index}]"
            discount = self._parse_discount(entry, location)
            item_id = entry.get("item_id")
            if item_id is None:
                base_total = sum_money(
                    self.currency,
                    (item.gross_amount_for(item.remaining_quantity) for item in items),
                    "session items",
                )
                write_offs.append(
                    self.discount_calculator.to_session_write_off(discount, base_total)
                )
                continue

            item = item_by_id.get(item_id)
            if item is None:
                raise NotFoundError(f"{location}: item '{item_id}' not found in session items")
            quantity = self._int(entry, "quantity", location, default=item.remaining_quantity)
            item_write_offs.append(
                self.discount_calculator.to_item_write_off(
                    discount, item_id, quantity, item.gross_amount_for(quantity)
                )
            )

        return SessionState(
            currency=self.currency,
            items=items,
            item_write_offs=tuple(item_write_offs),
            write_offs=tuple(write_offs),
        )

    def _parse_item(self, entry: Any, location: str) -> SessionItemSnapshot:
        entry = self._object(entry, location)
        return SessionItemSnapshot(
            item_id=self._str(entry, "id", location),
            unit_price=self._money(entry, "unit_price", location),
            remaining_quantity=self._int(entry, "remaining_quantity", location),
        )

    def _parse_item_write_off(self, entry: Any, location: str) -> ItemWriteOff:
        entry = self._object(entry, location)
        return ItemWriteOff(
            item_id=self._str(entry, "item_id", location),
            quantity=self._int(entry, "quantity", location),
            amount=self._money(entry, "amount", location),
            reason=self._reason(entry, location),
            note=entry.get("note"),
        )

    def _parse_write_off(self, entry: Any, location: str) -> WriteOff:
        entry = self._object(entry, location)
        return WriteOff(
            amount=self._money(entry, "amount", location),
            reason=self._reason(entry, location),
            note=entry.get("note"),
        )

    def _parse_discount(self, entry: Any, location: str) -> Discount:
        entry = self._object(entry, location)
        has_percent = "percent" in entry
        has_amount = "amount" in entry
        if has_percent == has_amount:
            raise ValidationError(f"{location}: exactly one of 'percent' or 'amount' is required")
        reason = self._reason(entry, location)
        if has_percent:
            return Percent(self._decimal(entry, "percent", location), reason, entry.get("note"))
        return FlatAmount(self._money(entry, "amount", location), reason, entry.get("note"))

    @staticmethod
    def _list(document: dict, key: str, required: bool = False) -> list:
        value = document.get(key)
        if value is None:
            if required:
                raise ValidationError(f"Session document is missing '{key}'")
            return []
        if not isinstance(value, list):
            raise ValidationError(f"'{key}' must be a list")
        return value

    @staticmethod
    def _object(entry: Any, location: str) -> dict:
        if not isinstance(entry, dict):
            raise ValidationError(f"{location}: expected an object")
        return entry

    @staticmethod
    def _str(entry: dict, key: str, location: str) -> str:
        value = entry.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{location}: '{key}' must be a non-empty string")
        return value

    @staticmethod
    def _int(entry: dict, key: str, location: str, default: Optional[int] = None) -> int:
        value = entry.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{location}: '{key}' must be an integer")
        return value

    @staticmethod
    def _decimal(entry: dict, key: str, location: str) -> Decimal:
        if key not in entry:
            raise ValidationError(f"{location}: missing '{key}'")
        raw = entry[key]
        # JSON numbers are accepted alongside strings
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            raw = str(raw)
        try:
            return parse_amount(raw)
        except ValueError as e:
            raise ValidationError(f"{location}: invalid '{key}': {e}") from e

    def _money(self, entry: dict, key: str, location: str) -> Money:
        return Money.of(self.currency, self._decimal(entry, key, location))

    @staticmethod
    def _reason(entry: dict, location: str) -> WriteOffReason:
        value = entry.get("reason")
        if value is None:
            raise ValidationError(f"{location}: missing 'reason'")
        try:
            return WriteOffReason(str(value).upper())
        except ValueError as e:
            allowed = ", ".join(reason.value for reason in WriteOffReason)
            raise ValidationError(
                f"{location}: unknown reason '{value}' (expected one of: {allowed})"
            ) from e
