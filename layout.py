#!/usr/bin/env python3
"""
Page layout assembly for Carteira Analyzer dashboard.
"""

import pandas as pd
from dash import dcc, html, dash_table

from components import (
    COLORS, CURRENCY_OPTIONS, HELP_TEXTS, Dropdown,
    create_help_icon, create_summary_card, create_data_table_styles,
)
from data_sources import list_clients
from figures import create_empty_figure
from fx import NATIVE_CURRENCY


def create_header() -> html.Div:
    """Create the page header."""
    return html.Div([
        html.H1('Carteira Analyzer', style={
            'color': COLORS['text'],
            'marginBottom': '0',
            'fontSize': '2.5rem'
        }),
        html.P('Performance de carteiras vs. meta de retorno', style={
            'color': COLORS['text_muted'],
            'marginTop': '0.5rem'
        })
    ], style={
        'textAlign': 'center',
        'padding': '2rem',
        'backgroundColor': COLORS['background'],
    })


def create_controls(clients: list) -> html.Div:
    """Client selector and display currency toggle."""
    client_options = [{'label': c, 'value': c} for c in clients]
    return html.Div([
        html.Div([
            html.Label('Cliente', style={'color': COLORS['text'], 'marginRight': '0.5rem'}),
            Dropdown(
                id='client-select',
                options=client_options,
                value=clients[0] if clients else None,
                className='dropdown-lg',
                searchable=True,
                style={'minWidth': '260px'},
            ),
        ], style={'display': 'flex', 'alignItems': 'center'}),
        html.Div([
            html.Label('Moeda', style={'color': COLORS['text'], 'marginRight': '0.5rem'}),
            dcc.RadioItems(
                id='currency-toggle',
                options=CURRENCY_OPTIONS,
                value=NATIVE_CURRENCY,
                inline=True,
                style={'color': COLORS['text']},
                inputStyle={'marginLeft': '0.75rem'},
            ),
            create_help_icon(HELP_TEXTS['currency'], 'help-currency'),
        ], style={'display': 'flex', 'alignItems': 'center'}),
    ], style={
        'display': 'flex',
        'gap': '2rem',
        'justifyContent': 'center',
        'flexWrap': 'wrap',
        'padding': '0 2rem 1.5rem 2rem',
        'backgroundColor': COLORS['background'],
    })


def create_summary_cards() -> dcc.Loading:
    """Create the summary statistics cards section."""
    return dcc.Loading(
        id='loading-summary-cards',
        type='circle',
        color=COLORS['primary'],
        children=[
            html.Div([
                create_summary_card('position-label', 'Patrimônio', 'position-value',
                                    COLORS['primary']),
                create_summary_card('return-label', 'Rentabilidade acumulada', 'return-value',
                                    COLORS['accent'], HELP_TEXTS['portfolio_return'],
                                    sub_value_id='outperformance-value'),
                create_summary_card('target-label', 'Meta', 'target-value',
                                    COLORS['target'], HELP_TEXTS['target']),
            ], style={
                'display': 'flex',
                'gap': '1rem',
                'padding': '0 2rem',
                'marginBottom': '2rem',
                'backgroundColor': COLORS['background']
            }),
        ]
    )


def create_charts() -> html.Div:
    """Accumulated and monthly return charts."""
    graph_config = {'displayModeBar': False, 'responsive': True}
    return html.Div([
        dcc.Loading(
            type='circle',
            color=COLORS['primary'],
            children=[
                dcc.Graph(id='performance-graph', figure=create_empty_figure("Selecione um cliente"),
                          config=graph_config, style={'height': '420px'}),
                dcc.Graph(id='monthly-returns-graph', figure=create_empty_figure(""),
                          config=graph_config, style={'height': '300px'}),
            ]
        ),
    ], style={'padding': '0 2rem 2rem 2rem', 'backgroundColor': COLORS['background']})


def create_latest_table() -> html.Div:
    """Latest-period consolidated table by institution."""
    styles = create_data_table_styles()
    return html.Div([
        html.H3([
            'Consolidado - competência mais recente',
            create_help_icon(HELP_TEXTS['latest_table'], 'help-latest-table'),
        ], style={'color': COLORS['text'], 'display': 'flex', 'alignItems': 'center'}),
        dash_table.DataTable(
            id='latest-table',
            columns=[],
            data=[],
            **styles,
        ),
    ], style={'padding': '0 2rem 2rem 2rem', 'backgroundColor': COLORS['background']})


def _position_panel(title: str, help_key: str, graph_id: str, extra=None) -> html.Div:
    children = [
        html.H3([title, create_help_icon(HELP_TEXTS[help_key], f'help-{graph_id}')],
                style={'color': COLORS['text'], 'display': 'flex', 'alignItems': 'center'}),
        dcc.Graph(id=graph_id, figure=create_empty_figure(""),
                  config={'displayModeBar': False, 'responsive': True}, style={'height': '320px'}),
    ]
    if extra is not None:
        children.append(extra)
    return html.Div(children, style={
        'backgroundColor': COLORS['card'],
        'padding': '1rem',
        'borderRadius': '0.75rem',
        'flex': '1',
        'minWidth': '320px',
    })


def create_positions_section() -> html.Div:
    """Issuer concentration, maturity schedule and allocation by asset class."""
    return html.Div([
        _position_panel('Exposição por emissor', 'issuers', 'issuer-graph'),
        _position_panel('Cronograma de vencimentos', 'maturities', 'maturity-graph',
                        extra=html.P(id='next-maturity', style={'color': COLORS['text_muted'],
                                                                'margin': '0.5rem 0 0 0'})),
        _position_panel('Classes', 'strategies', 'strategy-graph'),
    ], style={
        'display': 'flex',
        'gap': '1rem',
        'flexWrap': 'wrap',
        'padding': '0 2rem 2rem 2rem',
        'backgroundColor': COLORS['background'],
    })


def create_data_stores(consolidated_data: list, policies_data: list,
                       positions_data: list = None) -> list:
    """Create all the dcc.Store components for data storage."""
    return [
        dcc.Store(id='consolidated-data', data=consolidated_data),
        dcc.Store(id='policies-data', data=policies_data),
        dcc.Store(id='positions-data', data=positions_data or []),
        dcc.Store(id='index-cache', data={}),
    ]


def create_layout(consolidated: pd.DataFrame = None,
                  policies: pd.DataFrame = None,
                  positions: pd.DataFrame = None) -> html.Div:
    """Create the complete page layout.

    Args:
        consolidated: Normalized consolidated performance data
        policies: Normalized investment policy data
        positions: Normalized per-asset positions (optional)

    Returns:
        Complete Dash layout
    """
    clients = list_clients(consolidated)
    consolidated_data = consolidated.to_dict('records') if consolidated is not None else []
    policies_data = policies.to_dict('records') if policies is not None else []
    positions_data = positions.to_dict('records') if positions is not None else []

    return html.Div([
        create_header(),
        create_controls(clients),
        html.Div(id='error-banner'),
        html.Div(id='warnings-list'),
        create_summary_cards(),
        create_charts(),
        create_latest_table(),
        create_positions_section(),
        *create_data_stores(consolidated_data, policies_data, positions_data),
    ], style={
        'backgroundColor': COLORS['background'],
        'minHeight': '100vh',
        'fontFamily': '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif'
    })
