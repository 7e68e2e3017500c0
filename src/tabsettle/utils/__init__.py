"""Utility functions for tabsettle."""

from tabsettle.utils.amount_parser import parse_amount
from tabsettle.utils.logging import configure_logging, get_logger

__all__ = ["parse_amount", "configure_logging", "get_logger"]
