"""Formatting utilities for currency display."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CAD": "$",
    "AUD": "$",
}
ZERO_DECIMAL_CURRENCIES = {"JPY"}


@dataclass(frozen=True)
class CurrencyFormat:
    """How money is rendered for one user; passed to whatever prints amounts."""

    code: str = "USD"
    symbol: str = "$"
    decimals: int = 2

    @classmethod
    def for_code(cls, code: str) -> "CurrencyFormat":
        code = (code or "USD").upper()
        return cls(
            code=code,
            symbol=CURRENCY_SYMBOLS.get(code, f"{code} "),
            decimals=0 if code in ZERO_DECIMAL_CURRENCIES else 2,
        )


def format_currency(
    amount: Union[float, int],
    fmt: CurrencyFormat = CurrencyFormat(),
    include_sign: bool = True,
) -> str:
    """Format a currency amount with thousands separators.

    Args:
        amount: The amount to format
        fmt: Currency settings to render with
        include_sign: Whether to include the currency symbol

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-5, CurrencyFormat.for_code("EUR"))
        '-€5.00'
    """
    formatted = f"{abs(amount):,.{fmt.decimals}f}"
    prefix = "-" if amount < 0 else ""
    return f"{prefix}{fmt.symbol}{formatted}" if include_sign else f"{prefix}{formatted}"


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"
