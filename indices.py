#!/usr/bin/env python3
"""
Reference index series for Carteira Analyzer.

An index series is a sparse mapping of period ('MM/YYYY') to a number:
either a monthly rate (IPCA, INPC, CDI, as a decimal fraction) or an
exchange rate (USD/BRL, in BRL per USD). Lookups are exact matches only;
a missing period is reported as NOT_AVAILABLE (None), never interpolated.
"""

from datetime import datetime

import pandas as pd
import yfinance as yf
from bcb import sgs

from errors import UpstreamFetchError
from periods import normalize_period, period_from_date

NOT_AVAILABLE = None

# BCB Series codes
BCB_SERIES = {
    'CDI': 12,      # CDI daily rate (% a.d.)
    'IPCA': 433,    # IPCA monthly (% a.m.)
    'INPC': 188,    # INPC monthly (% a.m.)
}

# Yahoo Finance tickers
YFINANCE_TICKERS = {
    'USD': 'USDBRL=X',       # USD/BRL exchange rate
}

FX_SERIES_ID = 'USD'


def lookup(series: dict[str, float] | None, period) -> float | None:
    """
    Get the index value for a period.

    Args:
        series: Sparse period -> value mapping
        period: Period string (any format accepted by normalize_period)

    Returns:
        The value, or NOT_AVAILABLE if the period has no quote
    """
    if not series:
        return NOT_AVAILABLE
    key = normalize_period(period)
    if key is None:
        return NOT_AVAILABLE
    return series.get(key, NOT_AVAILABLE)


def monthly_rates_to_series(rates: pd.Series) -> dict[str, float]:
    """
    Build an index series from monthly percentage rates indexed by date.

    BCB publishes monthly indices dated on the first day of the month,
    in percent (0.42 means 0.42%). Values are stored as decimal fractions.
    """
    series = {}
    for date, value in rates.dropna().items():
        series[period_from_date(date)] = float(value) / 100
    return series


def compound_daily_to_monthly(daily_rates: pd.Series) -> dict[str, float]:
    """
    Compound daily percentage rates into one monthly rate per period.

    Args:
        daily_rates: Daily rates in percent, indexed by date

    Returns:
        Period -> monthly rate (decimal fraction)
    """
    if daily_rates.empty:
        return {}

    daily_factor = 1 + (daily_rates.dropna() / 100)
    dates = pd.to_datetime(daily_factor.index)
    grouped = daily_factor.groupby(dates.to_period('M')).prod()

    return {
        period_from_date(month.to_timestamp()): float(factor - 1)
        for month, factor in grouped.items()
    }


def last_quote_per_month(df: pd.DataFrame) -> dict[str, float]:
    """
    Keep the quote of the last available day of each month.

    Args:
        df: DataFrame with 'date' and 'value' columns

    Returns:
        Period -> quote of the last trading day in that month
    """
    if df.empty:
        return {}

    df = df.copy()
    df['date'] = pd.to_datetime(df['date'])
    df = df.sort_values('date')
    last = df.groupby(df['date'].dt.to_period('M')).last()

    return {
        period_from_date(month.to_timestamp()): float(row['value'])
        for month, row in last.iterrows()
    }


def fetch_bcb_series(series_code: int, start_date: str, end_date: str = None) -> pd.Series:
    """
    Fetch a series from BCB (Banco Central do Brasil).

    Args:
        series_code: BCB SGS series code
        start_date: Start date (YYYY-MM-DD)
        end_date: End date (YYYY-MM-DD), defaults to today

    Returns:
        pandas Series with the data
    """
    if end_date is None:
        end_date = datetime.now().strftime('%Y-%m-%d')

    data = sgs.get({'series': series_code}, start=start_date, end=end_date)
    return data['series']


def fetch_monthly_rate_index(name: str, start_date: str, end_date: str = None) -> dict[str, float]:
    """Fetch a monthly inflation index (IPCA or INPC) as monthly rates."""
    rates = fetch_bcb_series(BCB_SERIES[name], start_date, end_date)
    return monthly_rates_to_series(rates)


def fetch_ipca(start_date: str, end_date: str = None) -> dict[str, float]:
    """Fetch IPCA monthly rates from BCB."""
    return fetch_monthly_rate_index('IPCA', start_date, end_date)


def fetch_inpc(start_date: str, end_date: str = None) -> dict[str, float]:
    """Fetch INPC monthly rates from BCB."""
    return fetch_monthly_rate_index('INPC', start_date, end_date)


def fetch_cdi_monthly(start_date: str, end_date: str = None) -> dict[str, float]:
    """
    Fetch CDI from BCB and compound the daily rates of each month.

    Returns period -> monthly CDI rate (decimal fraction).
    """
    daily_rate = fetch_bcb_series(BCB_SERIES['CDI'], start_date, end_date)
    return compound_daily_to_monthly(daily_rate)


def fetch_ptax_monthly(start_date: str, end_date: str = None) -> dict[str, float]:
    """
    Fetch USD/BRL exchange rate from Yahoo Finance.

    Returns period -> closing rate of the last trading day of the month.
    end_date is inclusive (yfinance's own end is exclusive).
    """
    if end_date is None:
        end_date = datetime.now().strftime('%Y-%m-%d')
    exclusive_end = (pd.to_datetime(end_date) + pd.Timedelta(days=1)).strftime('%Y-%m-%d')

    ticker = yf.Ticker(YFINANCE_TICKERS['USD'])
    hist = ticker.history(start=start_date, end=exclusive_end)

    if hist.empty:
        raise ValueError("No USD/BRL data found for the given date range")

    df = pd.DataFrame({
        'date': hist.index.tz_localize(None),
        'value': hist['Close'].values
    })
    return last_quote_per_month(df)


INDEX_FETCHERS = {
    'IPCA': fetch_ipca,
    'INPC': fetch_inpc,
    'CDI': fetch_cdi_monthly,
    'USD': fetch_ptax_monthly,
}

AVAILABLE_INDICES = list(INDEX_FETCHERS.keys())


def fetch_index_series(series_id: str, start_date: str, end_date: str = None) -> dict[str, float]:
    """
    Fetch a single index series by name.

    Args:
        series_id: Index name (IPCA, INPC, CDI, USD)
        start_date: Start date (YYYY-MM-DD)
        end_date: End date (YYYY-MM-DD)

    Returns:
        Sparse mapping period -> value

    Raises:
        UpstreamFetchError: if the index is unknown or the source fails
    """
    if series_id not in INDEX_FETCHERS:
        raise UpstreamFetchError(series_id, "índice desconhecido")

    # One month of lookback so the first period has a previous quote
    buffer_start = (pd.to_datetime(start_date) - pd.DateOffset(months=1)).strftime('%Y-%m-%d')

    try:
        return INDEX_FETCHERS[series_id](buffer_start, end_date)
    except Exception as e:
        print(f"Warning: Could not fetch {series_id}: {e}")
        raise UpstreamFetchError(series_id, str(e)) from e
