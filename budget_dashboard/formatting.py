"""Formatting utilities for currency, percentages and dates."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Union


def escape_dollar_for_markdown(amount: Union[Decimal, float]) -> str:
    """Format a dollar amount and escape the dollar sign for markdown rendering.

    Streamlit markdown treats ``$`` as a LaTeX math delimiter, so amounts
    embedded in ``st.markdown`` text need the sign escaped.

    Args:
        amount: The dollar amount to format (e.g., Decimal('1234.56'))

    Returns:
        Formatted string with escaped dollar sign (e.g., "\\$1,234.56")

    Example:
        >>> escape_dollar_for_markdown(Decimal('1234.56'))
        '\\$1,234.56'
    """
    return format_currency(amount).replace("$", "\\$")


def format_currency(
    amount: Union[Decimal, float, int],
    include_sign: bool = True,
    symbol: str = "$",
) -> str:
    """Format a currency amount with thousands separators and two decimals.

    Negative amounts put the minus sign before the currency symbol.

    Args:
        amount: The amount to format
        include_sign: Whether to include the currency symbol
        symbol: Currency symbol to prefix

    Returns:
        Formatted currency string (e.g., "$1,234.56", "-$50.00" or "1,234.56")

    Example:
        >>> format_currency(Decimal('1234.56'))
        '$1,234.56'
        >>> format_currency(Decimal('-50'))
        '-$50.00'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    negative = amount < 0
    formatted = f"{abs(amount):,.2f}"
    if include_sign:
        formatted = f"{symbol}{formatted}"
    return f"-{formatted}" if negative else formatted


def format_percent(value: Union[Decimal, float]) -> str:
    """Format a percentage value that is already scaled to 0-100."""
    return f"{value:.1f}%"


def format_week_range(start: datetime, end: datetime) -> str:
    """Render a budget period as e.g. ``'Mar 04 - Mar 10, 2024'``."""
    if start.year == end.year:
        return f"{start:%b %d} - {end:%b %d, %Y}"
    return f"{start:%b %d, %Y} - {end:%b %d, %Y}"
