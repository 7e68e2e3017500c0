"""Application configuration values."""

import os
import re
from dataclasses import dataclass
from typing import Optional

from tabsettle.domain.errors import ValidationError

CURRENCY_ENV_VAR = "TABSETTLE_CURRENCY"
LOG_LEVEL_ENV_VAR = "TABSETTLE_LOG_LEVEL"
DEFAULT_CURRENCY = "EUR"


@dataclass(frozen=True)
class ApplicationCurrency:
    """The single currency the application settles tabs in.

    The domain stays currency-agnostic and receives this value explicitly.
    """

    code: str

    def __post_init__(self):
        if not isinstance(self.code, str):
            raise ValidationError("currency code must be a string")
        normalized = self.code.strip().upper()
        if not normalized:
            raise ValidationError("currency code must not be blank")
        if not re.fullmatch(r"[A-Z]{3}", normalized):
            raise ValidationError(
                f"currency code must be a valid ISO-4217 code (e.g. EUR), got '{self.code}'"
            )
        object.__setattr__(self, "code", normalized)

    def __str__(self) -> str:
        return self.code


def resolve_currency(currency: Optional[str] = None) -> ApplicationCurrency:
    """Resolve the application currency.

    Args:
        currency: Explicit currency code. If None, checks TABSETTLE_CURRENCY
            environment variable, then defaults to EUR

    Returns:
        ApplicationCurrency instance
    """
    if currency is None:
        # Check environment variable
        currency = os.environ.get(CURRENCY_ENV_VAR)

    if currency is None:
        currency = DEFAULT_CURRENCY

    return ApplicationCurrency(currency)
