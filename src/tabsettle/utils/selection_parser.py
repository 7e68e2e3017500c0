"""Parsing of payer selections given on the command line."""

from tabsettle.domain.entities import PaymentSelection


def parse_selection(selection_str: str) -> PaymentSelection:
    """Parse an "ITEM:QTY" string into a PaymentSelection.

    The quantity defaults to 1 when omitted ("ITEM"). The item id may itself
    contain colons; only the last one separates the quantity.

    Examples:
        "beer:2"    -> PaymentSelection("beer", 2)
        "burger"    -> PaymentSelection("burger", 1)

    Raises:
        ValueError: If the quantity is not a positive integer
    """
    if not selection_str or not selection_str.strip():
        raise ValueError("Empty selection")

    selection_str = selection_str.strip()
    item_id, sep, qty_str = selection_str.rpartition(":")
    if not sep:
        return PaymentSelection(selection_str, 1)

    item_id = item_id.strip()
    qty_str = qty_str.strip()
    if not qty_str.isdigit():
        raise ValueError(f"Invalid quantity '{qty_str}' in selection '{selection_str}'")
    return PaymentSelection(item_id, int(qty_str))
