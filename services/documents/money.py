"""Decimal parsing and display formatting for monetary amounts."""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
SUMMARY_NO_DECIMALS_FROM = Decimal("100000")


def parse_amount(value: Any) -> Decimal:
    """Convert user input into a finite Decimal.

    Anything non-numeric, NaN or infinite becomes 0, so a half-filled
    line item never breaks a running total.

    Args:
        value: Raw amount (Decimal, int, float, numeric string or junk)

    Returns:
        Finite Decimal value
    """
    if isinstance(value, bool) or value is None:
        return Decimal(0)

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int | float):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return Decimal(0)
    else:
        return Decimal(0)

    if not parsed.is_finite():
        return Decimal(0)
    return parsed


def format_amount(value: Decimal, symbol: str = "€") -> str:
    """Format an amount the way rendered documents show it.

    Always two decimals followed by the currency symbol, e.g. "1234.50 €".
    """
    quantized = parse_amount(value).quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{quantized:.2f} {symbol}"


def format_summary_amount(value: Decimal) -> str:
    """Format a total for the on-screen summary.

    Large totals (100000 and above) drop the decimals and get Spanish
    thousands grouping ("125.000"); smaller ones keep two decimals.
    The currency symbol is shown separately by the client.
    """
    amount = parse_amount(value)
    if amount >= SUMMARY_NO_DECIMALS_FROM:
        whole = int(amount.quantize(Decimal(1), rounding=ROUND_DOWN))
        return f"{whole:,}".replace(",", ".")
    return f"{amount.quantize(CENT, rounding=ROUND_HALF_UP):.2f}"
