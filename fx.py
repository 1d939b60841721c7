#!/usr/bin/env python3
"""
Currency conversion for Carteira Analyzer.

Values and returns are stored in the currency they were reported in and
converted on read into the display currency, using the month-end USD/BRL
quote of each period. A missing quote never raises: the unconverted value
is returned instead (fail-open).

Converting a return is not a rescale. The currency's own movement in the
period compounds with the asset return:

    foreign -> native:  (1 + r) * (1 + v) - 1
    native -> foreign:  (1 + r) / (1 + v) - 1

where v = (quote[period] - quote[previous]) / quote[previous].
"""

from indices import lookup
from periods import previous_period, is_valid_period
from dashboard_helpers import format_currency, currency_symbol

NATIVE_CURRENCY = 'BRL'
FOREIGN_CURRENCY = 'USD'
CURRENCIES = (NATIVE_CURRENCY, FOREIGN_CURRENCY)

# Labels found in the consolidated exports
CURRENCY_ALIASES = {
    'BRL': NATIVE_CURRENCY,
    'REAL': NATIVE_CURRENCY,
    'REAIS': NATIVE_CURRENCY,
    'R$': NATIVE_CURRENCY,
    'USD': FOREIGN_CURRENCY,
    'DOLAR': FOREIGN_CURRENCY,
    'DÓLAR': FOREIGN_CURRENCY,
    'US$': FOREIGN_CURRENCY,
}


def normalize_currency(label) -> str:
    """Map a currency label ('Real', 'Dolar', 'USD', ...) to a currency code."""
    if not isinstance(label, str):
        return NATIVE_CURRENCY
    return CURRENCY_ALIASES.get(label.strip().upper(), NATIVE_CURRENCY)


def convert_value(value: float, period: str, original_currency: str,
                  display_currency: str, fx_series: dict[str, float]) -> float:
    """
    Convert a monetary amount into the display currency.

    Args:
        value: Amount in original_currency
        period: Period the amount refers to
        original_currency: Currency the amount is stored in
        display_currency: Currency to show
        fx_series: Period -> BRL per USD

    Returns:
        Converted amount, or the unconverted amount if the quote is missing
    """
    original_currency = normalize_currency(original_currency)
    display_currency = normalize_currency(display_currency)
    if original_currency == display_currency:
        return value

    quote = lookup(fx_series, period)
    if quote is None or quote <= 0:
        return value

    if display_currency == FOREIGN_CURRENCY:
        return value / quote
    return value * quote


def fx_variation(period: str, fx_series: dict[str, float]) -> float | None:
    """
    Exchange-rate variation over a period, relative to the previous one.

    Returns None if the period or its predecessor has no quote.
    """
    if not is_valid_period(period):
        return None

    current = lookup(fx_series, period)
    previous = lookup(fx_series, previous_period(period))
    if current is None or previous is None or previous == 0:
        return None

    return (current - previous) / previous


def adjust_return_with_fx(monthly_return: float, period: str, original_currency: str,
                          display_currency: str, fx_series: dict[str, float]) -> float:
    """
    Re-express a monthly return (decimal fraction) in the display currency.

    Returns the input unchanged if the currencies match or a quote is missing.
    """
    original_currency = normalize_currency(original_currency)
    display_currency = normalize_currency(display_currency)
    if original_currency == display_currency:
        return monthly_return

    variation = fx_variation(period, fx_series)
    if variation is None:
        return monthly_return

    if display_currency == NATIVE_CURRENCY:
        return (1 + monthly_return) * (1 + variation) - 1
    return (1 + monthly_return) / (1 + variation) - 1


class CurrencyContext:
    """
    Display-currency selection plus its conversion cache.

    Changing the currency wipes the cache and bumps `generation`. Callers
    that started work under an older generation must discard their results
    (see is_current()).
    """

    def __init__(self, fx_series: dict[str, float] | None = None,
                 currency: str = NATIVE_CURRENCY):
        self.fx_series = fx_series or {}
        self._currency = normalize_currency(currency)
        self._cache = {}
        self.generation = 0

    @property
    def currency(self) -> str:
        return self._currency

    def set_currency(self, currency: str) -> None:
        currency = normalize_currency(currency)
        if currency == self._currency:
            return
        self._currency = currency
        self._cache.clear()
        self.generation += 1

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def cache_size(self) -> int:
        return len(self._cache)

    def convert_value(self, value: float, period: str, original_currency: str) -> float:
        key = ('value', value, period, normalize_currency(original_currency), self._currency)
        if key not in self._cache:
            self._cache[key] = convert_value(
                value, period, original_currency, self._currency, self.fx_series
            )
        return self._cache[key]

    def adjust_return(self, monthly_return: float, period: str, original_currency: str) -> float:
        key = ('return', monthly_return, period, normalize_currency(original_currency), self._currency)
        if key not in self._cache:
            self._cache[key] = adjust_return_with_fx(
                monthly_return, period, original_currency, self._currency, self.fx_series
            )
        return self._cache[key]

    def format_currency(self, value: float) -> str:
        return format_currency(value, self._currency)

    def currency_symbol(self) -> str:
        return currency_symbol(self._currency)
