"""Domain layer for tabsettle application."""

from tabsettle.domain.check_amount import CheckAmountCalculator
from tabsettle.domain.discount import DiscountCalculator
from tabsettle.domain.session_import import SessionImportService

__all__ = [
    "CheckAmountCalculator",
    "DiscountCalculator",
    "SessionImportService",
]
