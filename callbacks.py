#!/usr/bin/env python3
"""
Callback functions for Carteira Analyzer dashboard.
"""

import pandas as pd
from dash import callback, Output, Input, State

from business_logic import (
    build_currency_context,
    calculate_performance_stats,
    get_accumulated_series,
    issuer_exposure,
    latest_consolidated_table,
    make_cached_fetcher,
    maturity_schedule,
    next_maturity,
    strategy_breakdown,
)
from components import COLORS, create_error_banner, create_warning_list
from dashboard_helpers import prepare_dataframe, format_percentage
from data_sources import fetch_positions, fetch_snapshots
from errors import UpstreamFetchError
from figures import (
    create_empty_figure,
    create_issuer_figure,
    create_maturity_figure,
    create_monthly_returns_figure,
    create_performance_figure,
    create_strategy_figure,
)
from fx import CurrencyContext
from indices import fetch_index_series

LATEST_TABLE_COLUMNS = {
    'instituicao': 'Instituição',
    'conta': 'Conta',
    'patrimonio_inicial': 'Patrimônio Inicial',
    'movimentacao': 'Movimentação',
    'impostos': 'Impostos',
    'ganho_financeiro': 'Ganho Financeiro',
    'patrimonio_final': 'Patrimônio Final',
    'rendimento': 'Rendimento',
}

MONEY_TABLE_COLUMNS = {'patrimonio_inicial', 'movimentacao', 'impostos',
                       'ganho_financeiro', 'patrimonio_final'}


def format_latest_table(table: pd.DataFrame, context: CurrencyContext) -> tuple[list, list]:
    """DataTable columns and rows for the latest consolidated table."""
    if table.empty:
        return [], []

    keys = [k for k in LATEST_TABLE_COLUMNS if k in table.columns]
    columns = [{'name': LATEST_TABLE_COLUMNS[k], 'id': k} for k in keys]

    rows = []
    for _, row in table.iterrows():
        formatted = {}
        for key in keys:
            value = row[key]
            if key in MONEY_TABLE_COLUMNS:
                formatted[key] = context.format_currency(value) if pd.notna(value) else '-'
            elif key == 'rendimento':
                formatted[key] = format_percentage(value, signed=False)
            else:
                formatted[key] = value if pd.notna(value) else '-'
        rows.append(formatted)
    return columns, rows


VIEW_OUTPUTS = [
    ('performance-graph', 'figure'),
    ('monthly-returns-graph', 'figure'),
    ('position-label', 'children'),
    ('position-value', 'children'),
    ('return-value', 'children'),
    ('return-value', 'style'),
    ('outperformance-value', 'children'),
    ('target-label', 'children'),
    ('target-value', 'children'),
    ('target-value', 'style'),
    ('latest-table', 'columns'),
    ('latest-table', 'data'),
    ('issuer-graph', 'figure'),
    ('maturity-graph', 'figure'),
    ('next-maturity', 'children'),
    ('strategy-graph', 'figure'),
    ('error-banner', 'children'),
    ('warnings-list', 'children'),
    ('index-cache', 'data'),
]


def _empty_view(message: str, index_cache: dict, error=None, warnings=None) -> dict:
    muted = {'color': COLORS['text_muted'], 'margin': '0.5rem 0'}
    return {
        'performance-graph.figure': create_empty_figure(message),
        'monthly-returns-graph.figure': create_empty_figure(''),
        'position-label.children': 'Patrimônio',
        'position-value.children': '--',
        'return-value.children': '--',
        'return-value.style': muted,
        'outperformance-value.children': '',
        'target-label.children': 'Meta',
        'target-value.children': '--',
        'target-value.style': muted,
        'latest-table.columns': [],
        'latest-table.data': [],
        'issuer-graph.figure': create_empty_figure(''),
        'maturity-graph.figure': create_empty_figure(''),
        'next-maturity.children': '',
        'strategy-graph.figure': create_empty_figure(''),
        'error-banner.children': error,
        'warnings-list.children': warnings,
        'index-cache.data': index_cache,
    }


def format_next_maturity(maturity: dict | None, context: CurrencyContext) -> str:
    """Text for the earliest upcoming maturity."""
    if maturity is None:
        return 'Nenhum vencimento futuro.'
    return (f"Próximo vencimento: {maturity['ativo']} em {maturity['vencimento']} "
            f"({context.format_currency(maturity['posicao'])})")


def _currency_rows(snapshots: pd.DataFrame, positions: pd.DataFrame) -> pd.DataFrame:
    """Periods and currencies that need FX quotes (snapshots plus positions)."""
    if positions.empty:
        return snapshots
    columns = [c for c in ('competencia', 'moeda') if c in positions.columns]
    return pd.concat([snapshots, positions[columns]], ignore_index=True)


def compute_client_view(client, currency, consolidated_data, policies_data, index_cache,
                        positions_data=None, index_fetcher=fetch_index_series) -> dict:
    """
    Recompute the whole client view for the selected client and currency.

    Upstream failures (data not loaded, index or FX source down) produce
    the error banner and empty figures instead of a partial view.

    Returns:
        dict keyed by 'component-id.property' (see VIEW_OUTPUTS)
    """
    index_cache = dict(index_cache or {})
    consolidated = prepare_dataframe(consolidated_data)
    policies = prepare_dataframe(policies_data)
    positions = prepare_dataframe(positions_data)

    if not client or consolidated.empty:
        return _empty_view('Selecione um cliente', index_cache)

    fetcher = make_cached_fetcher(index_cache, index_fetcher)
    try:
        snapshots = fetch_snapshots(consolidated, client)
        client_positions = fetch_positions(positions, client)
        context = build_currency_context(_currency_rows(snapshots, client_positions), currency, fetcher)
        result = get_accumulated_series(client, context, consolidated, policies, fetcher)
    except UpstreamFetchError as e:
        print(f"Error loading {client}: {e}")
        return _empty_view('Erro ao carregar dados', index_cache, error=create_error_banner(str(e)))

    warnings = create_warning_list(result['warnings']) if result['warnings'] else None
    series = result['series']
    if series.empty:
        return _empty_view('Sem dados de performance', index_cache, warnings=warnings)

    stats = calculate_performance_stats(result, snapshots, context, COLORS)
    table = latest_consolidated_table(snapshots, context)
    table_columns, table_rows = format_latest_table(table, context)
    symbol = context.currency_symbol()

    return {
        'performance-graph.figure': create_performance_figure(series, result['target_label'], symbol),
        'monthly-returns-graph.figure': create_monthly_returns_figure(series),
        'position-label.children': stats['position_label'],
        'position-value.children': stats['position_value'],
        'return-value.children': stats['return_text'],
        'return-value.style': stats['return_style'],
        'outperformance-value.children': stats['outperformance_text'],
        'target-label.children': stats['target_label'],
        'target-value.children': stats['target_text'],
        'target-value.style': stats['target_style'],
        'latest-table.columns': table_columns,
        'latest-table.data': table_rows,
        'issuer-graph.figure': create_issuer_figure(issuer_exposure(client_positions, context), symbol),
        'maturity-graph.figure': create_maturity_figure(maturity_schedule(client_positions, context), symbol),
        'next-maturity.children': format_next_maturity(next_maturity(client_positions, context), context),
        'strategy-graph.figure': create_strategy_figure(strategy_breakdown(client_positions, context)),
        'error-banner.children': None,
        'warnings-list.children': warnings,
        'index-cache.data': index_cache,
    }


def register_callbacks(app):
    """Register all callbacks for the Dash application.

    Args:
        app: The Dash application instance
    """

    @callback(
        *[Output(component_id, prop) for component_id, prop in VIEW_OUTPUTS],
        Input('client-select', 'value'),
        Input('currency-toggle', 'value'),
        State('consolidated-data', 'data'),
        State('policies-data', 'data'),
        State('index-cache', 'data'),
        State('positions-data', 'data'),
    )
    def update_client_view(client, currency, consolidated_data, policies_data, index_cache,
                           positions_data):
        view = compute_client_view(client, currency, consolidated_data, policies_data,
                                   index_cache, positions_data)
        return tuple(view[f"{component_id}.{prop}"] for component_id, prop in VIEW_OUTPUTS)
