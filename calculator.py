#!/usr/bin/env python3
"""
Performance accumulation for Carteira Analyzer.

Monthly portfolio returns are compounded into an accumulated return series.
In parallel, a target series is compounded from a monthly index rate plus
the client's annual spread, spread evenly over 12 months:

    meta_mensal = indice + ((1 + spread) ** (1/12) - 1)

Note on missing index values:
    When the index has no value for a period, the target monthly return is
    reported as 0 and the target factor does NOT advance for that period
    (the accumulated target stays at its previous value). The portfolio
    always compounds (see DESIGN.md).

Snapshots must be in chronological order and unique per period before
compounding; accumulate_performance() sorts and consolidates them itself.
"""

import pandas as pd

from fx import NATIVE_CURRENCY, CurrencyContext
from indices import lookup
from periods import normalize_period, period_key
from target import ClientTarget

MONTHS_PER_YEAR = 12

MONEY_COLUMNS = [
    'patrimonio_inicial',
    'movimentacao',
    'impostos',
    'patrimonio_final',
    'ganho_financeiro',
]

SERIES_COLUMNS = [
    'competencia',
    'rentabilidade_mensal',
    'rentabilidade_acumulada',
    'meta_mensal',
    'meta_acumulada',
    'indice',
]


def monthly_target_rate(annual_rate: float) -> float:
    """Monthly rate equivalent to an annual rate: (1 + a)^(1/12) - 1."""
    return (1 + annual_rate) ** (1 / MONTHS_PER_YEAR) - 1


def sort_snapshots(df: pd.DataFrame) -> pd.DataFrame:
    """
    Sort snapshots chronologically by 'competencia'.

    Periods are rewritten in canonical 'MM/YYYY' form. Malformed periods
    are kept as-is and sink to the start. The sort is stable, so rows of
    the same period keep their input order.
    """
    if df.empty:
        return df.copy()

    df = df.copy()
    df['competencia'] = df['competencia'].map(lambda p: normalize_period(p) or p)
    keys = df['competencia'].map(period_key)
    df['_ano'] = keys.map(lambda k: k[0])
    df['_mes'] = keys.map(lambda k: k[1])
    df = df.sort_values(['_ano', '_mes'], kind='mergesort')
    return df.drop(columns=['_ano', '_mes']).reset_index(drop=True)


def convert_snapshots(df: pd.DataFrame, context: CurrencyContext) -> pd.DataFrame:
    """
    Express snapshot amounts and returns in the context's display currency.

    Each row is converted from its own 'moeda'. Returns ('rendimento', in
    percent) are FX-adjusted, not rescaled. The stored data is not touched.
    """
    if df.empty:
        return df.copy()

    df = df.copy()
    currencies = df['moeda'] if 'moeda' in df.columns else pd.Series(NATIVE_CURRENCY, index=df.index)

    for col in MONEY_COLUMNS:
        if col in df.columns:
            df[col] = [
                context.convert_value(value, period, currency)
                for value, period, currency in zip(df[col], df['competencia'], currencies)
            ]

    if 'rendimento' in df.columns:
        df['rendimento'] = [
            context.adjust_return(rend / 100, period, currency) * 100
            for rend, period, currency in zip(df['rendimento'].fillna(0), df['competencia'], currencies)
        ]

    df['moeda'] = context.currency
    return df


def _weighted_return(group: pd.DataFrame) -> float:
    """Return of several accounts in one period, weighted by opening value."""
    returns = group['rendimento'].fillna(0)
    if len(group) == 1:
        return float(returns.iloc[0])

    if 'patrimonio_inicial' in group.columns:
        weights = group['patrimonio_inicial'].fillna(0)
        if weights.sum() > 0:
            return float((returns * weights).sum() / weights.sum())

    return float(returns.mean())


def consolidate_snapshots(df: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse snapshots to one row per period.

    Clients with several institutions/accounts have one row per account and
    period. Amounts are summed; the return is the opening-value weighted
    mean (simple mean when there is no opening value). Amounts are summed
    as given, so rows should already share a currency (see convert_snapshots).

    Returns:
        Chronologically sorted DataFrame with 'competencia', 'rendimento'
        and the money columns present in the input
    """
    if df.empty:
        return pd.DataFrame(columns=['competencia', 'rendimento'])

    df = sort_snapshots(df)
    if 'rendimento' not in df.columns:
        df['rendimento'] = 0.0

    rows = []
    for competencia, group in df.groupby('competencia', sort=False, dropna=False):
        row = {'competencia': competencia}
        for col in MONEY_COLUMNS:
            if col in group.columns:
                row[col] = group[col].sum()
        row['rendimento'] = _weighted_return(group)
        rows.append(row)

    return pd.DataFrame(rows)


def accumulate_performance(snapshots: pd.DataFrame,
                           target: ClientTarget | None,
                           index_series: dict[str, float] | None,
                           context: CurrencyContext = None) -> pd.DataFrame:
    """
    Compound monthly portfolio and target returns.

    Args:
        snapshots: DataFrame with 'competencia' and 'rendimento' (percent)
                   columns, in any order
        target: Client target, or None/undefined to skip the target series
        index_series: Period -> monthly index rate (decimal fraction)
        context: Optional display currency; when given, returns are
                 FX-adjusted into context.currency before compounding

    Returns:
        DataFrame with SERIES_COLUMNS, values in percent. Target columns are
        None on every row when the target is undefined.
    """
    if snapshots is None or snapshots.empty:
        return pd.DataFrame(columns=SERIES_COLUMNS)

    if context is not None:
        snapshots = convert_snapshots(snapshots, context)
    df = consolidate_snapshots(snapshots)

    has_target = target is not None and target.is_defined
    spread_monthly = monthly_target_rate(target.annual_rate) if has_target else None

    portfolio_factor = 1.0
    target_factor = 1.0
    results = []

    for _, row in df.iterrows():
        competencia = row['competencia']
        portfolio_monthly = row['rendimento'] / 100

        index_value = lookup(index_series, competencia)

        target_monthly = None
        target_accumulated = None
        if has_target:
            target_monthly = 0.0
            if index_value is not None:
                target_monthly = index_value + spread_monthly
                if context is not None:
                    target_monthly = context.adjust_return(target_monthly, competencia, NATIVE_CURRENCY)
                target_factor *= (1 + target_monthly)
            target_accumulated = (target_factor - 1) * 100
            target_monthly = target_monthly * 100

        portfolio_factor *= (1 + portfolio_monthly)

        results.append({
            'competencia': competencia,
            'rentabilidade_mensal': portfolio_monthly * 100,
            'rentabilidade_acumulada': (portfolio_factor - 1) * 100,
            'meta_mensal': target_monthly,
            'meta_acumulada': target_accumulated,
            'indice': index_value * 100 if index_value is not None else None,
        })

    return pd.DataFrame(results, columns=SERIES_COLUMNS)


def summarize_series(series: pd.DataFrame) -> dict:
    """
    Summary of an accumulated series for the dashboard cards.

    Returns:
        Dictionary with last_period, portfolio_accumulated,
        target_accumulated (None without target) and outperformance
        (percentage points, None without target)
    """
    if series.empty:
        return {
            'last_period': None,
            'portfolio_accumulated': None,
            'target_accumulated': None,
            'outperformance': None,
        }

    last = series.iloc[-1]
    portfolio_accumulated = float(last['rentabilidade_acumulada'])
    target_accumulated = last['meta_acumulada']
    if target_accumulated is None or pd.isna(target_accumulated):
        target_accumulated = None
        outperformance = None
    else:
        target_accumulated = float(target_accumulated)
        outperformance = portfolio_accumulated - target_accumulated

    return {
        'last_period': last['competencia'],
        'portfolio_accumulated': portfolio_accumulated,
        'target_accumulated': target_accumulated,
        'outperformance': outperformance,
    }
