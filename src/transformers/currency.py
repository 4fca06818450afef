"""
Static-rate currency conversion.
"""

from typing import Optional

from config.settings import CurrencyConfig


class UnsupportedCurrencyError(ValueError):
    """Raised for a currency code missing from the rate table."""


class CurrencyConverter:
    """Converts base-currency amounts using a fixed rate table."""

    def __init__(self, currency_config: Optional[CurrencyConfig] = None):
        self.config = currency_config or CurrencyConfig()

    @property
    def supported_currencies(self) -> list[str]:
        return list(self.config.rates.keys())

    def rate(self, currency: str) -> float:
        try:
            return self.config.rates[currency.upper()]
        except KeyError:
            raise UnsupportedCurrencyError(
                f"Unsupported currency {currency!r}; "
                f"expected one of {', '.join(self.supported_currencies)}"
            ) from None

    def convert(self, amount: float, currency: Optional[str] = None) -> float:
        """Convert a base-currency amount, rounded to 2 decimals."""
        currency = currency or self.config.target_currency
        return round(amount * self.rate(currency), 2)

    def format(self, amount: float, currency: Optional[str] = None) -> str:
        """Human-readable amount, e.g. '€12.50'."""
        currency = (currency or self.config.target_currency).upper()
        symbol = self.config.symbols.get(currency, f"{currency} ")
        return f"{symbol}{amount:,.2f}"
