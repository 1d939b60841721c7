"""
Tests for indices.py - Reference index series.

Network sources (BCB SGS and Yahoo Finance) are replaced with monkeypatched
fakes, so these tests run offline.
"""

import pytest
import pandas as pd

import indices
from errors import UpstreamFetchError
from indices import (
    NOT_AVAILABLE,
    lookup,
    monthly_rates_to_series,
    compound_daily_to_monthly,
    last_quote_per_month,
    fetch_index_series,
)


class TestLookup:
    """Tests for lookup."""

    def test_exact_match(self, sample_ipca_series):
        """Test that a present period returns its value."""
        assert lookup(sample_ipca_series, '01/2024') == 0.0042

    def test_iso_period_matches(self, sample_ipca_series):
        """Test that 'YYYY-MM' periods are normalized before lookup."""
        assert lookup(sample_ipca_series, '2024-03') == 0.0016

    def test_missing_is_not_interpolated(self, sample_ipca_series):
        """Test that a gap between two quotes stays missing."""
        assert lookup(sample_ipca_series, '02/2024') is NOT_AVAILABLE

    @pytest.mark.parametrize('series,period', [
        ({}, '01/2024'),
        (None, '01/2024'),
        ({'01/2024': 0.1}, 'bad'),
    ])
    def test_not_available(self, series, period):
        """Test empty series and malformed periods."""
        assert lookup(series, period) is NOT_AVAILABLE


class TestSeriesHelpers:
    """Tests for the pure conversion helpers."""

    def test_monthly_rates_to_series(self):
        """Test percent rates dated on the first of the month."""
        rates = pd.Series([0.42, None, 0.16],
                          index=pd.to_datetime(['2024-01-01', '2024-02-01', '2024-03-01']))
        series = monthly_rates_to_series(rates)

        assert set(series) == {'01/2024', '03/2024'}
        assert abs(series['01/2024'] - 0.0042) < 1e-12

    def test_compound_daily_to_monthly(self):
        """Test that daily rates compound within their month."""
        rates = pd.Series([0.04, 0.04, 0.05],
                          index=pd.to_datetime(['2024-01-30', '2024-01-31', '2024-02-01']))
        series = compound_daily_to_monthly(rates)

        assert abs(series['01/2024'] - (1.0004 ** 2 - 1)) < 1e-12
        assert abs(series['02/2024'] - 0.0005) < 1e-12

    def test_compound_empty(self):
        """Test empty daily rates."""
        assert compound_daily_to_monthly(pd.Series(dtype=float)) == {}

    def test_last_quote_per_month(self):
        """Test that the last trading day of each month wins."""
        df = pd.DataFrame({
            'date': ['2024-01-31', '2024-01-02', '2024-02-29', '2024-02-28'],
            'value': [4.95, 4.85, 4.97, 4.99],
        })
        assert last_quote_per_month(df) == {'01/2024': 4.95, '02/2024': 4.97}

    def test_last_quote_empty(self):
        """Test empty quotes."""
        assert last_quote_per_month(pd.DataFrame(columns=['date', 'value'])) == {}


class TestFetchIndexSeries:
    """Tests for fetch_index_series."""

    def test_unknown_index_raises(self):
        """Test that an unknown id is an upstream error."""
        with pytest.raises(UpstreamFetchError) as exc:
            fetch_index_series('SELIC', '2024-01-01', '2024-03-31')
        assert exc.value.source == 'SELIC'

    def test_one_month_lookback(self, monkeypatch):
        """Test that the fetch starts one month early."""
        calls = []

        def fake_fetcher(start_date, end_date=None):
            calls.append((start_date, end_date))
            return {'02/2024': 0.001}

        monkeypatch.setitem(indices.INDEX_FETCHERS, 'IPCA', fake_fetcher)
        result = fetch_index_series('IPCA', '2024-03-01', '2024-03-31')

        assert calls == [('2024-02-01', '2024-03-31')]
        assert result == {'02/2024': 0.001}

    def test_source_failure_raises(self, monkeypatch):
        """Test that any source failure becomes UpstreamFetchError."""
        def broken_fetcher(start_date, end_date=None):
            raise ConnectionError('timeout')

        monkeypatch.setitem(indices.INDEX_FETCHERS, 'CDI', broken_fetcher)
        with pytest.raises(UpstreamFetchError) as exc:
            fetch_index_series('CDI', '2024-01-01', '2024-03-31')
        assert exc.value.source == 'CDI'
        assert 'timeout' in str(exc.value)

    def test_ipca_from_bcb(self, monkeypatch):
        """Test IPCA parsing from a fake SGS response."""
        def fake_get(codes, start=None, end=None):
            assert codes == {'series': 433}
            return pd.DataFrame(
                {'series': [0.42, 0.83]},
                index=pd.to_datetime(['2024-01-01', '2024-02-01']),
            )

        monkeypatch.setattr(indices.sgs, 'get', fake_get)
        result = fetch_index_series('IPCA', '2024-02-01', '2024-02-29')

        assert abs(result['01/2024'] - 0.0042) < 1e-12
        assert abs(result['02/2024'] - 0.0083) < 1e-12

    def test_usd_from_yfinance(self, monkeypatch):
        """Test USD/BRL month-end quotes from a fake ticker."""
        class FakeTicker:
            def __init__(self, symbol):
                assert symbol == 'USDBRL=X'

            def history(self, start=None, end=None):
                index = pd.to_datetime(['2024-01-30', '2024-01-31', '2024-02-29']).tz_localize('UTC')
                return pd.DataFrame({'Close': [4.90, 4.95, 4.97]}, index=index)

        monkeypatch.setattr(indices.yf, 'Ticker', FakeTicker)
        result = fetch_index_series('USD', '2024-02-01', '2024-02-29')

        assert result == {'01/2024': 4.95, '02/2024': 4.97}

    def test_usd_last_day_of_range_is_included(self, monkeypatch):
        """Test that the close on end_date is kept (yfinance's end is exclusive)."""
        requested = {}

        class ExclusiveEndTicker:
            def __init__(self, symbol):
                pass

            def history(self, start=None, end=None):
                requested['end'] = end
                index = pd.to_datetime(['2024-04-30', '2024-05-30', '2024-05-31'])
                hist = pd.DataFrame({'Close': [60.0, 64.0, 65.0]}, index=index.tz_localize('UTC'))
                keep = index < pd.to_datetime(end)
                return hist[keep]

        monkeypatch.setattr(indices.yf, 'Ticker', ExclusiveEndTicker)
        result = fetch_index_series('USD', '2024-05-01', '2024-05-31')

        assert requested['end'] == '2024-06-01'
        assert result['05/2024'] == 65.0
        assert result['04/2024'] == 60.0

    def test_usd_empty_history_raises(self, monkeypatch):
        """Test that an empty quote history is an upstream error."""
        class EmptyTicker:
            def __init__(self, symbol):
                pass

            def history(self, start=None, end=None):
                return pd.DataFrame(columns=['Close'])

        monkeypatch.setattr(indices.yf, 'Ticker', EmptyTicker)
        with pytest.raises(UpstreamFetchError):
            fetch_index_series('USD', '2024-02-01', '2024-02-29')
