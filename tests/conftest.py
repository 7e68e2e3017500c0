"""Shared pytest fixtures for tabsettle tests."""

import json
import logging
from pathlib import Path

import pytest

from tabsettle.domain.check_amount import CheckAmountCalculator
from tabsettle.domain.discount import DiscountCalculator
from tabsettle.domain.entities import SessionItemSnapshot
from tabsettle.domain.money import Money
from tabsettle.utils.logging import ROOT_LOGGER


@pytest.fixture
def currency():
    """Currency used across domain tests."""
    return "EUR"


@pytest.fixture
def money(currency):
    """Return a helper that builds Money in the test currency."""

    def _money(amount):
        return Money.of(currency, amount)

    return _money


@pytest.fixture
def item(money):
    """Return a helper that builds a session item snapshot."""

    def _item(item_id, unit_price, remaining_quantity):
        return SessionItemSnapshot(item_id, money(unit_price), remaining_quantity)

    return _item


@pytest.fixture
def calculator():
    """Create a CheckAmountCalculator with default collaborators."""
    return CheckAmountCalculator()


@pytest.fixture
def discount_calculator():
    """Create a DiscountCalculator."""
    return DiscountCalculator()


@pytest.fixture
def session_document():
    """A small session with one write-off of each kind."""
    return {
        "currency": "EUR",
        "items": [
            {"id": "beer", "unit_price": "4.50", "remaining_quantity": 3},
            {"id": "burger", "unit_price": "12.00", "remaining_quantity": 1},
        ],
        "item_write_offs": [
            {
                "item_id": "beer",
                "quantity": 1,
                "amount": "4.50",
                "reason": "COMPENSATION",
                "note": "spilled",
            }
        ],
        "write_offs": [{"amount": "2.00", "reason": "ADMIN_ADJUSTMENT"}],
    }


@pytest.fixture
def write_session(tmp_path):
    """Return a helper that writes a session document to a JSON file."""

    def _write(document, name="session.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def package_logger():
    """Restore the package logger after each test.

    The CLI attaches a stream handler bound to the runner's stderr.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
