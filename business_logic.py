#!/usr/bin/env python3
"""
Business logic behind the dashboard callbacks.

This module wires the data sources, index fetchers and calculator together
for one client, so the callbacks only deal with presentation.
"""

import calendar

import pandas as pd

from calculator import accumulate_performance, convert_snapshots, summarize_series, MONEY_COLUMNS
from data_sources import fetch_snapshots, fetch_client_target
from dashboard_helpers import format_currency as _format_currency, format_percentage, get_return_color
from fx import (
    CurrencyContext,
    FOREIGN_CURRENCY,
    NATIVE_CURRENCY,
    convert_value,
    normalize_currency,
)
from indices import fetch_index_series, FX_SERIES_ID
from periods import is_valid_period, normalize_period, period_from_date, period_key, parse_period
from target import build_client_target, target_label


def validate_periods(snapshots: pd.DataFrame) -> list[str]:
    """
    Data-quality warnings for snapshot periods.

    Malformed periods do not stop the accumulation (they sort first); they
    are reported here so the caller can show them.
    """
    if snapshots is None or snapshots.empty:
        return []

    warnings = []
    for period in snapshots['competencia']:
        if not is_valid_period(period):
            warnings.append(f"Competência inválida: {period!r}")
    return warnings


def get_date_range(snapshots: pd.DataFrame) -> tuple[str, str] | None:
    """
    First and last calendar day covered by the valid snapshot periods.

    Returns:
        tuple: (start_date, end_date) as 'YYYY-MM-DD', or None without valid periods
    """
    if snapshots is None or snapshots.empty:
        return None

    parsed = [parse_period(p) for p in snapshots['competencia']]
    parsed = [p for p in parsed if p is not None]
    if not parsed:
        return None

    first_year, first_month = min(parsed)
    last_year, last_month = max(parsed)
    last_day = calendar.monthrange(last_year, last_month)[1]
    return (f"{first_year:04d}-{first_month:02d}-01",
            f"{last_year:04d}-{last_month:02d}-{last_day:02d}")


def needs_fx(snapshots: pd.DataFrame, display_currency: str) -> bool:
    """Whether showing these snapshots in display_currency requires FX quotes."""
    if normalize_currency(display_currency) == FOREIGN_CURRENCY:
        return True
    if snapshots is None or snapshots.empty or 'moeda' not in snapshots.columns:
        return False
    return any(normalize_currency(m) != NATIVE_CURRENCY for m in snapshots['moeda'])


def build_currency_context(snapshots: pd.DataFrame, display_currency: str,
                           index_fetcher=fetch_index_series) -> CurrencyContext:
    """
    Create a CurrencyContext with the FX quotes the snapshots need.

    Raises:
        UpstreamFetchError: if the FX series is needed and cannot be fetched
    """
    fx_series = {}
    date_range = get_date_range(snapshots)
    if date_range is not None and needs_fx(snapshots, display_currency):
        fx_series = index_fetcher(FX_SERIES_ID, *date_range)
    return CurrencyContext(fx_series, display_currency)


def make_cached_fetcher(cache: dict, fetcher=fetch_index_series):
    """
    Wrap an index fetcher with a dict cache (e.g. the content of a dcc.Store).

    Keys are 'series_id|start|end'. Failed fetches are not cached.
    """
    def cached_fetcher(series_id: str, start_date: str, end_date: str = None) -> dict[str, float]:
        key = f"{series_id}|{start_date}|{end_date}"
        if key not in cache:
            cache[key] = fetcher(series_id, start_date, end_date)
        return cache[key]

    return cached_fetcher


def _compute_series(client: str, context: CurrencyContext,
                    consolidated: pd.DataFrame, policies: pd.DataFrame,
                    index_fetcher) -> dict:
    snapshots = fetch_snapshots(consolidated, client)
    warnings = validate_periods(snapshots)
    target = build_client_target(fetch_client_target(policies, client))

    index_series = {}
    date_range = get_date_range(snapshots)
    if target is not None and target.is_defined and date_range is not None:
        index_series = index_fetcher(target.index, *date_range)

    series = accumulate_performance(snapshots, target, index_series, context)

    return {
        'series': series,
        'target': target,
        'target_label': target_label(target),
        'warnings': warnings,
        'currency': context.currency,
        'generation': context.generation,
    }


def get_accumulated_series(client: str, context: CurrencyContext,
                           consolidated: pd.DataFrame, policies: pd.DataFrame,
                           index_fetcher=fetch_index_series) -> dict:
    """
    Accumulated portfolio and target series of a client.

    All-or-nothing: an UpstreamFetchError from any source propagates and no
    partial series is returned. If the display currency changes while the
    series is being computed, that result is discarded and the series is
    computed again under the new currency.

    Args:
        client: Client name
        context: Display currency and FX quotes
        consolidated: Normalized consolidated performance data
        policies: Normalized policy data (may be None)
        index_fetcher: Callable(series_id, start_date, end_date) -> series

    Returns:
        dict with keys: series, target, target_label, warnings, currency, generation
    """
    while True:
        generation = context.generation
        result = _compute_series(client, context, consolidated, policies, index_fetcher)
        if context.is_current(generation):
            for warning in result['warnings']:
                print(f"Warning: {client}: {warning}")
            return result
        print(f"Warning: currency changed to {context.currency} during computation, recomputing")


def latest_period(snapshots: pd.DataFrame) -> str | None:
    """Most recent valid period in the snapshots (chronological, not lexicographic)."""
    if snapshots is None or snapshots.empty:
        return None
    valid = [p for p in snapshots['competencia'] if is_valid_period(p)]
    if not valid:
        return None
    return max(valid, key=period_key)


def latest_consolidated_table(snapshots: pd.DataFrame, context: CurrencyContext) -> pd.DataFrame:
    """
    Rows of the most recent period, one per institution, in display currency.

    Amounts are converted with the period quote and 'rendimento' is
    FX-adjusted (percent).
    """
    period = latest_period(snapshots)
    if period is None:
        return pd.DataFrame()

    rows = snapshots[snapshots['competencia'].map(period_key) == period_key(period)]
    table = convert_snapshots(rows, context)
    columns = [c for c in ['competencia', 'instituicao', 'conta', *MONEY_COLUMNS, 'rendimento']
               if c in table.columns]
    return table[columns].reset_index(drop=True)


def calculate_performance_stats(result: dict, snapshots: pd.DataFrame,
                                context: CurrencyContext, colors: dict) -> dict:
    """
    Card texts for the performance summary.

    Returns:
        dict with keys: position_label, position_value, return_text,
        return_style, target_label, target_text, target_style,
        outperformance_text
    """
    summary = summarize_series(result['series'])
    table = latest_consolidated_table(snapshots, context)

    if table.empty or 'patrimonio_final' not in table.columns:
        position_value = 0.0
        position_label = 'Patrimônio'
    else:
        position_value = float(table['patrimonio_final'].sum())
        period = table['competencia'].iloc[0]
        position_label = f"Patrimônio em {normalize_period(period) or period}"

    portfolio_acc = summary['portfolio_accumulated']
    target_acc = summary['target_accumulated']

    if target_acc is None:
        target_text = 'Meta não definida'
        outperformance_text = '--'
    else:
        target_text = format_percentage(target_acc)
        outperformance_text = f"{format_percentage(summary['outperformance'])} vs. meta"

    return {
        'position_label': position_label,
        'position_value': context.format_currency(position_value),
        'return_text': format_percentage(portfolio_acc),
        'return_style': {'color': get_return_color(portfolio_acc, colors), 'margin': '0.5rem 0'},
        'target_label': result['target_label'],
        'target_text': target_text,
        'target_style': {'color': get_return_color(target_acc, colors), 'margin': '0.5rem 0'},
        'outperformance_text': outperformance_text,
    }


def convert_amount(value: float, period: str, original_currency: str,
                   display_currency: str, fx_series: dict[str, float]) -> float:
    """Convert a single amount into the display currency (fail-open)."""
    return convert_value(value, period, original_currency, display_currency, fx_series)


def format_currency(value: float, display_currency: str) -> str:
    """Locale-formatted money string in the display currency."""
    return _format_currency(value, normalize_currency(display_currency))


# Per-asset positions (issuer concentration, maturities, asset classes)

ISSUER_TOP_N = 10
MATURITY_MONTHS = 12

# Asset class labels from the exports, grouped into allocation buckets.
# First matching keyword wins.
ASSET_CLASS_GROUPS = [
    ('Conta', ['cdi - liquidez']),
    ('Renda Fixa', ['cdi - fundos', 'cdi - titulos', 'inflação', 'pré fixado']),
    ('Multimercado', ['multimercado']),
    ('Renda Variável', ['ações', 'imobiliário']),
    ('Alternativo', ['private equity', 'exterior', 'coe', 'ouro', 'criptoativos']),
]
OTHER_ASSET_CLASS = 'Outros'


def group_asset_class(asset_class) -> str:
    """Allocation bucket of an export asset class ('CDI - Titulos' -> 'Renda Fixa')."""
    if not isinstance(asset_class, str):
        return OTHER_ASSET_CLASS
    lower = asset_class.lower()
    for group, keywords in ASSET_CLASS_GROUPS:
        if any(keyword in lower for keyword in keywords):
            return group
    return OTHER_ASSET_CLASS


def latest_positions(positions: pd.DataFrame) -> pd.DataFrame:
    """Position rows of the most recent period (chronological)."""
    period = latest_period(positions)
    if period is None:
        return pd.DataFrame()
    rows = positions[positions['competencia'].map(period_key) == period_key(period)]
    return rows.reset_index(drop=True)


def convert_positions(positions: pd.DataFrame, context: CurrencyContext) -> pd.DataFrame:
    """Express 'posicao' in the display currency, each row from its own 'moeda'."""
    if positions.empty:
        return positions.copy()

    df = positions.copy()
    currencies = df['moeda'] if 'moeda' in df.columns else pd.Series(NATIVE_CURRENCY, index=df.index)
    df['posicao'] = [
        context.convert_value(value, period, currency)
        for value, period, currency in zip(df['posicao'].fillna(0), df['competencia'], currencies)
    ]
    df['moeda'] = context.currency
    return df


def issuer_exposure(positions: pd.DataFrame, context: CurrencyContext,
                    top_n: int = ISSUER_TOP_N) -> pd.DataFrame:
    """
    Exposure by issuer in the most recent period, largest first.

    Rows without an issuer are ignored.

    Returns:
        DataFrame with 'emissor', 'exposicao' (display currency) and 'ativos'
    """
    rows = latest_positions(positions)
    if rows.empty or 'emissor' not in rows.columns:
        return pd.DataFrame(columns=['emissor', 'exposicao', 'ativos'])

    rows = rows[rows['emissor'].notna() & (rows['emissor'].astype(str).str.strip() != '')]
    rows = convert_positions(rows, context)
    if rows.empty:
        return pd.DataFrame(columns=['emissor', 'exposicao', 'ativos'])

    grouped = rows.groupby('emissor').agg(exposicao=('posicao', 'sum'), ativos=('posicao', 'size'))
    grouped = grouped.sort_values('exposicao', ascending=False, kind='mergesort').head(top_n)
    return grouped.reset_index()


def _upcoming_maturities(positions: pd.DataFrame, context: CurrencyContext,
                         as_of: pd.Timestamp | None) -> pd.DataFrame:
    rows = latest_positions(positions)
    if rows.empty or 'vencimento' not in rows.columns:
        return pd.DataFrame()

    if as_of is None:
        as_of = pd.Timestamp.today().normalize()
    rows = rows.copy()
    rows['_vencimento'] = pd.to_datetime(rows['vencimento'], errors='coerce')
    rows = rows[rows['_vencimento'].notna() & (rows['_vencimento'] >= as_of)]
    if rows.empty:
        return pd.DataFrame()
    return convert_positions(rows, context).sort_values('_vencimento', kind='mergesort')


def maturity_schedule(positions: pd.DataFrame, context: CurrencyContext,
                      as_of: pd.Timestamp = None,
                      months: int = MATURITY_MONTHS) -> pd.DataFrame:
    """
    Upcoming maturities of the most recent period, grouped by month.

    Only maturities on or after as_of (default today) count, and only the
    first `months` months that have a maturity are returned.

    Returns:
        DataFrame with 'mes' ('MM/YYYY'), 'total' (display currency) and
        'ativos', in chronological order
    """
    rows = _upcoming_maturities(positions, context, as_of)
    if rows.empty:
        return pd.DataFrame(columns=['mes', 'total', 'ativos'])

    rows['mes'] = rows['_vencimento'].map(period_from_date)
    # rows are sorted by date, so first-seen group order is chronological
    grouped = rows.groupby('mes', sort=False).agg(total=('posicao', 'sum'), ativos=('posicao', 'size'))
    grouped = grouped.reset_index()
    return grouped.head(months).reset_index(drop=True)


def next_maturity(positions: pd.DataFrame, context: CurrencyContext,
                  as_of: pd.Timestamp = None) -> dict | None:
    """The earliest upcoming maturity: {'ativo', 'vencimento' ('DD/MM/YYYY'), 'posicao'}."""
    rows = _upcoming_maturities(positions, context, as_of)
    if rows.empty:
        return None

    first = rows.iloc[0]
    return {
        'ativo': first['ativo'] if 'ativo' in rows.columns else None,
        'vencimento': first['_vencimento'].strftime('%d/%m/%Y'),
        'posicao': float(first['posicao']),
    }


def strategy_breakdown(positions: pd.DataFrame, context: CurrencyContext) -> pd.DataFrame:
    """
    Allocation by asset class bucket in the most recent period.

    Returns:
        DataFrame with 'classe', 'valor' (display currency), 'ativos',
        'percentual' (share of the total, percent) and 'rendimento_medio'
        (position-weighted return, percent), largest first
    """
    columns = ['classe', 'valor', 'ativos', 'percentual', 'rendimento_medio']
    rows = latest_positions(positions)
    if rows.empty:
        return pd.DataFrame(columns=columns)

    rows = convert_positions(rows, context)
    rows['classe'] = rows['classe'].map(group_asset_class) if 'classe' in rows.columns else OTHER_ASSET_CLASS
    returns = rows['rendimento'].fillna(0) if 'rendimento' in rows.columns else 0.0
    rows['_rendimento_ponderado'] = returns * rows['posicao']

    grouped = rows.groupby('classe').agg(
        valor=('posicao', 'sum'),
        ativos=('posicao', 'size'),
        _ponderado=('_rendimento_ponderado', 'sum'),
    ).reset_index()

    total = grouped['valor'].sum()
    grouped['percentual'] = grouped['valor'] / total * 100 if total else 0.0
    grouped['rendimento_medio'] = [
        p / v if v else 0.0 for p, v in zip(grouped['_ponderado'], grouped['valor'])
    ]
    grouped = grouped.sort_values('valor', ascending=False, kind='mergesort')
    return grouped[columns].reset_index(drop=True)
