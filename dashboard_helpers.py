#!/usr/bin/env python3
"""
Helper functions for the dashboard callbacks (formatting, store parsing).
"""

import pandas as pd

CURRENCY_SYMBOLS = {
    'BRL': 'R$',
    'USD': 'US$',
}


def prepare_dataframe(data: list | None) -> pd.DataFrame:
    """
    Convert list of dicts (from dcc.Store) to DataFrame.

    Args:
        data: List of dictionaries

    Returns:
        DataFrame, or empty DataFrame if data is None/empty
    """
    if not data:
        return pd.DataFrame()
    return pd.DataFrame(data)


def currency_symbol(currency: str) -> str:
    """Symbol for a currency code ('R$' for BRL, 'US$' for USD)."""
    return CURRENCY_SYMBOLS.get(currency, CURRENCY_SYMBOLS['BRL'])


def format_number_ptbr(value: float, decimals: int = 2) -> str:
    """
    Format a number with Brazilian separators.

    Example: 1234567.891 -> '1.234.567,89'
    """
    text = f"{value:,.{decimals}f}"
    return text.replace(',', '_').replace('.', ',').replace('_', '.')


def format_currency(value: float, currency: str = 'BRL') -> str:
    """
    Format a value as a currency string in pt-BR style.

    Args:
        value: Numeric value to format
        currency: 'BRL' or 'USD'

    Returns:
        Formatted string like 'R$ 1.234,56' or '-US$ 10,00'
    """
    symbol = currency_symbol(currency)
    sign = '-' if value < 0 else ''
    return f"{sign}{symbol} {format_number_ptbr(abs(value))}"


def format_percentage(value: float | None, signed: bool = True) -> str:
    """
    Format a value as percentage string.

    Args:
        value: Percentage value (e.g., 10.5 for 10.5%)
        signed: Whether to include + sign for positive values

    Returns:
        Formatted string like '+10,50%' or 'N/A' for None
    """
    if value is None or pd.isna(value):
        return 'N/A'
    text = format_number_ptbr(abs(value))
    if value < 0:
        return f"-{text}%"
    if signed:
        return f"+{text}%"
    return f"{text}%"


def get_return_color(return_value: float | None, colors: dict) -> str:
    """
    Get the appropriate color for return display.

    Args:
        return_value: Return value (None means not available)
        colors: Color palette dictionary

    Returns:
        Color hex code
    """
    if return_value is None or pd.isna(return_value):
        return colors.get('text_muted', '#64748b')
    if return_value >= 0:
        return colors.get('accent', '#0891b2')
    return colors.get('danger', '#dc2626')
