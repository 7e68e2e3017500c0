"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class CurrencyMismatchError(ValidationError):
    """Two monetary values in one operation use different currencies."""


class InvalidReductionError(ValidationError):
    """A resolved reduction is zero or larger than the amount it reduces."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as duplicate identifiers."""


class NothingPayableError(DomainError):
    """Write-offs leave nothing to charge."""


class AllocationError(DomainError):
    """A rounding remainder could not be distributed within the caps."""


class IllegalStateError(DomainError):
    """Operation not allowed in the current state of a domain object."""


def currency_mismatch(context: str, expected: str, actual: str) -> str:
    """Return message for a currency mismatch."""
    return f"Currency mismatch in {context}: expected {expected}, got {actual}"


def item_currency_mismatch(item_id: str, expected: str, actual: str) -> str:
    """Return message for a session item priced in the wrong currency."""
    return (
        f"Currency mismatch in session items: item '{item_id}' "
        f"is priced in {actual}, expected {expected}"
    )


def item_not_found(item_id: str) -> str:
    """Return message for a selection referencing an unknown item."""
    return f"Selected item '{item_id}' not found in session items"


def duplicate_item(item_id: str) -> str:
    """Return message for a duplicated session item id."""
    return f"Duplicate session item id '{item_id}'"


def quantity_not_positive(item_id: str, quantity: int) -> str:
    """Return message for a non-positive selected quantity."""
    return f"Selected quantity must be > 0 for item '{item_id}' (got {quantity})"


def quantity_exceeds_remaining(item_id: str, quantity: int, remaining: int) -> str:
    """Return message for a selection larger than the unpaid quantity."""
    return (
        f"Selected quantity {quantity} exceeds remaining quantity {remaining} "
        f"for item '{item_id}'"
    )


def missing_cap(item_id: str) -> str:
    """Return message for an allocation step without a cap for an item."""
    return f"Missing cap for item '{item_id}'"


def missing_allocation(item_id: str) -> str:
    """Return message for a remainder step without a current allocation."""
    return f"Missing current allocation for item '{item_id}'"


def zero_payable_item(item_id: str) -> str:
    """Return message when write-offs reduce a selected item to zero."""
    return f"Selected item '{item_id}' results in zero payable amount"


def note_too_long(owner: str, max_length: int) -> str:
    """Return message for an over-long audit note."""
    return f"{owner} note must be at most {max_length} characters"
