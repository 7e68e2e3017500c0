"""Domain model entities for tabsettle.

These are pure, immutable data classes describing a session's payable state,
the reductions recorded against it and the result of quoting a check. They
are created fresh for every calculation and are never persisted by the
domain layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from tabsettle.domain.errors import (
    CurrencyMismatchError,
    ValidationError,
    currency_mismatch,
    note_too_long,
)
from tabsettle.domain.money import Money

NOTE_MAX_LENGTH = 200


class WriteOffReason(Enum):
    """Auditable reasons for applying a write-off."""

    DISCOUNT = "DISCOUNT"
    COMPENSATION = "COMPENSATION"
    PROMOTION = "PROMOTION"
    ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"
    OTHER = "OTHER"


def normalize_note(note: Optional[str], owner: str = "Write-off") -> Optional[str]:
    """Trim an optional note; blank notes become None.

    Raises:
        ValidationError: If the trimmed note is longer than NOTE_MAX_LENGTH
    """
    if note is None:
        return None
    if not isinstance(note, str):
        raise ValidationError(f"{owner} note must be a string")
    trimmed = note.strip()
    if not trimmed:
        return None
    if len(trimmed) > NOTE_MAX_LENGTH:
        raise ValidationError(note_too_long(owner, NOTE_MAX_LENGTH))
    return trimmed


def require_item_id(item_id: str) -> str:
    """Validate an item identity (non-blank string)."""
    if not isinstance(item_id, str) or not item_id.strip():
        raise ValidationError(f"item_id must be a non-blank string, got {item_id!r}")
    return item_id


def require_reason(reason: WriteOffReason) -> WriteOffReason:
    """Validate a write-off reason."""
    if not isinstance(reason, WriteOffReason):
        raise ValidationError(f"reason must be a WriteOffReason, got {reason!r}")
    return reason


def _require_positive_quantity(quantity: int, label: str = "quantity") -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"{label} must be an integer, got {quantity!r}")
    if quantity <= 0:
        raise ValidationError(f"{label} must be > 0, got {quantity}")
    return quantity


@dataclass(frozen=True)
class WriteOff:
    """Strictly positive reduction scoped to the whole session.

    A write-off is not a payment; it is an intentional reduction such as a
    discount, a compensation or an administrative correction.
    """

    amount: Money
    reason: WriteOffReason
    note: Optional[str] = None

    def __post_init__(self):
        require_reason(self.reason)
        if self.amount.is_zero():
            raise ValidationError("WriteOff amount must be strictly greater than zero")
        object.__setattr__(self, "note", normalize_note(self.note, "WriteOff"))


@dataclass(frozen=True)
class ItemWriteOff:
    """Strictly positive reduction scoped to a quantity of one item."""

    item_id: str
    quantity: int
    amount: Money
    reason: WriteOffReason
    note: Optional[str] = None

    def __post_init__(self):
        require_item_id(self.item_id)
        require_reason(self.reason)
        _require_positive_quantity(self.quantity)
        if self.amount.is_zero():
            raise ValidationError(
                f"ItemWriteOff amount must be strictly greater than zero "
                f"for item '{self.item_id}'"
            )
        object.__setattr__(self, "note", normalize_note(self.note, "ItemWriteOff"))


@dataclass(frozen=True)
class SessionItemSnapshot:
    """Payable state of one order item at calculation time."""

    item_id: str
    unit_price: Money
    remaining_quantity: int

    def __post_init__(self):
        require_item_id(self.item_id)
        if self.unit_price.is_zero():
            raise ValidationError(
                f"unit_price must be strictly greater than zero for item '{self.item_id}'"
            )
        if isinstance(self.remaining_quantity, bool) or not isinstance(
            self.remaining_quantity, int
        ):
            raise ValidationError(
                f"remaining_quantity must be an integer for item '{self.item_id}'"
            )
        if self.remaining_quantity < 0:
            raise ValidationError(
                f"remaining_quantity must be >= 0 for item '{self.item_id}'"
            )

    def gross_amount_for(self, quantity: int) -> Money:
        """Return ``unit_price x quantity``."""
        return self.unit_price.times(quantity)


@dataclass(frozen=True)
class PaymentSelection:
    """A payer's request to pay a quantity of one item."""

    item_id: str
    quantity: int

    def __post_init__(self):
        require_item_id(self.item_id)
        _require_positive_quantity(self.quantity)


@dataclass(frozen=True)
class PaidItem:
    """What a check paid for one item.

    ``paid_amount`` may be lower than ``unit_price_at_payment x quantity``
    because write-offs were allocated to the item.
    """

    item_id: str
    quantity: int
    unit_price_at_payment: Money
    paid_amount: Money

    def __post_init__(self):
        require_item_id(self.item_id)
        _require_positive_quantity(self.quantity)
        if self.paid_amount.is_zero():
            raise ValidationError(
                f"paid_amount must be strictly greater than zero for item '{self.item_id}'"
            )
        if self.unit_price_at_payment.currency != self.paid_amount.currency:
            raise CurrencyMismatchError(
                currency_mismatch(
                    f"paid item '{self.item_id}'",
                    self.unit_price_at_payment.currency,
                    self.paid_amount.currency,
                )
            )
        max_payable = self.unit_price_at_payment.times(self.quantity)
        if self.paid_amount > max_payable:
            raise ValidationError(
                f"paid_amount {self.paid_amount} exceeds unit price x quantity "
                f"({max_payable}) for item '{self.item_id}'"
            )

    @property
    def gross_amount(self) -> Money:
        return self.unit_price_at_payment.times(self.quantity)


@dataclass(frozen=True)
class CheckQuote:
    """Result of quoting a check: total amount and per-item allocation."""

    check_amount: Money
    paid_items: tuple[PaidItem, ...]

    def __post_init__(self):
        paid_items = tuple(self.paid_items)
        if self.check_amount.is_zero():
            raise ValidationError("check_amount must be strictly greater than zero")
        if not paid_items:
            raise ValidationError("paid_items must not be empty")
        currency = self.check_amount.currency
        for item in paid_items:
            if item.paid_amount.currency != currency:
                raise CurrencyMismatchError(
                    currency_mismatch(
                        f"paid item '{item.item_id}'", currency, item.paid_amount.currency
                    )
                )
        object.__setattr__(self, "paid_items", paid_items)

    @property
    def currency(self) -> str:
        return self.check_amount.currency


@dataclass(frozen=True)
class SessionState:
    """Everything the calculator needs to know about one session."""

    currency: str
    items: tuple[SessionItemSnapshot, ...] = field(default_factory=tuple)
    item_write_offs: tuple[ItemWriteOff, ...] = field(default_factory=tuple)
    write_offs: tuple[WriteOff, ...] = field(default_factory=tuple)
