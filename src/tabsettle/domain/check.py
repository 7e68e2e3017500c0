"""Check entity: one payment attempt built from a quote."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence

from tabsettle.domain.entities import CheckQuote, PaidItem
from tabsettle.domain.errors import IllegalStateError, ValidationError
from tabsettle.domain.money import Money

PAYMENT_REFERENCE_MAX_LENGTH = 100


class CheckStatus(Enum):
    """Lifecycle status of a check."""

    CREATED = "CREATED"
    AUTHORIZED = "AUTHORIZED"
    PAID = "PAID"
    FAILED = "FAILED"
    CANCELED = "CANCELED"

    @property
    def is_terminal(self) -> bool:
        return self in (CheckStatus.PAID, CheckStatus.FAILED, CheckStatus.CANCELED)


@dataclass(frozen=True)
class PaymentReference:
    """Correlation id returned by a payment provider."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValidationError("payment reference must be a string")
        trimmed = self.value.strip()
        if not trimmed:
            raise ValidationError("payment reference must not be blank")
        if len(trimmed) > PAYMENT_REFERENCE_MAX_LENGTH:
            raise ValidationError(
                f"payment reference must be at most {PAYMENT_REFERENCE_MAX_LENGTH} characters"
            )
        object.__setattr__(self, "value", trimmed)


def _require_reference(reference: PaymentReference) -> None:
    if not isinstance(reference, PaymentReference):
        raise ValidationError(f"payment reference must be a PaymentReference, got {reference!r}")


class Check:
    """A payment attempt against a session's outstanding balance.

    The amount and paid items are fixed at creation; only the status, the
    payment reference and the completion timestamp change afterwards.
    Timestamps are supplied by the caller.
    """

    def __init__(
        self,
        check_id: str,
        amount: Money,
        paid_items: Sequence[PaidItem],
        created_at: datetime,
        session_id: Optional[str] = None,
    ):
        """Initialize a check in status CREATED.

        Raises:
            ValidationError: If the amount is zero, paid items are empty or
                the currencies differ
        """
        if not check_id:
            raise ValidationError("check id must not be empty")
        if created_at is None:
            raise ValidationError("created_at must not be None")
        # CheckQuote enforces amount > 0, non-empty items and one currency.
        CheckQuote(amount, tuple(paid_items))

        self.id = check_id
        self.session_id = session_id
        self.amount = amount
        self.paid_items = tuple(paid_items)
        self.created_at = created_at
        self.status = CheckStatus.CREATED
        self.payment_reference: Optional[PaymentReference] = None
        self.completed_at: Optional[datetime] = None

    @classmethod
    def create_new(
        cls,
        amount: Money,
        paid_items: Sequence[PaidItem],
        created_at: datetime,
        session_id: Optional[str] = None,
    ) -> "Check":
        """Create a check with a generated id."""
        return cls(str(uuid.uuid4()), amount, paid_items, created_at, session_id)

    @classmethod
    def from_quote(
        cls,
        quote: CheckQuote,
        created_at: datetime,
        session_id: Optional[str] = None,
        check_id: Optional[str] = None,
    ) -> "Check":
        """Create a check carrying a quote's amount and allocation."""
        return cls(
            check_id or str(uuid.uuid4()),
            quote.check_amount,
            quote.paid_items,
            created_at,
            session_id,
        )

    def mark_authorized(self, reference: PaymentReference) -> None:
        """Mark as authorized; allowed from CREATED only."""
        self._require_status((CheckStatus.CREATED,), "Only CREATED checks can be authorized")
        _require_reference(reference)
        self.payment_reference = reference
        self.status = CheckStatus.AUTHORIZED

    def mark_paid(self, reference: PaymentReference, completed_at: datetime) -> None:
        """Mark as paid; allowed from CREATED or AUTHORIZED."""
        self._require_status(
            (CheckStatus.CREATED, CheckStatus.AUTHORIZED),
            "Only CREATED or AUTHORIZED checks can be paid",
        )
        _require_reference(reference)
        self._complete(CheckStatus.PAID, completed_at)
        self.payment_reference = reference

    def mark_failed(self, completed_at: datetime) -> None:
        """Mark as failed; allowed from CREATED or AUTHORIZED."""
        self._require_status(
            (CheckStatus.CREATED, CheckStatus.AUTHORIZED),
            "Only CREATED or AUTHORIZED checks can fail",
        )
        self._complete(CheckStatus.FAILED, completed_at)

    def cancel(self, completed_at: datetime) -> None:
        """Cancel; allowed from CREATED or AUTHORIZED."""
        self._require_status(
            (CheckStatus.CREATED, CheckStatus.AUTHORIZED),
            "Only CREATED or AUTHORIZED checks can be canceled",
        )
        self._complete(CheckStatus.CANCELED, completed_at)

    def _complete(self, status: CheckStatus, completed_at: datetime) -> None:
        if completed_at is None:
            raise ValidationError("completed_at must not be None")
        self.completed_at = completed_at
        self.status = status

    def _require_status(self, allowed: tuple[CheckStatus, ...], message: str) -> None:
        if self.status not in allowed:
            raise IllegalStateError(f"{message} (current: {self.status.value})")

    def __repr__(self) -> str:
        return f"Check(id={self.id!r}, amount={self.amount}, status={self.status.value})"
