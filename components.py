#!/usr/bin/env python3
"""
Reusable UI components for Carteira Analyzer dashboard.
"""

from dash import html, dcc


def Dropdown(id, options, value, className='', disabled=False, **kwargs):
    """Create a dropdown with sensible defaults (no search, not clearable)."""
    searchable = kwargs.pop('searchable', False)
    style = {'color': '#000'}
    if disabled:
        style['opacity'] = '0.5'
    if 'style' in kwargs:
        style.update(kwargs.pop('style'))
    return dcc.Dropdown(
        id=id,
        options=options,
        value=value,
        clearable=False,
        searchable=searchable,
        disabled=disabled,
        className=className,
        style=style,
        **kwargs
    )


# Color palette - light theme
COLORS = {
    'primary': '#1e40af',      # Blue 800 (portfolio)
    'secondary': '#3b82f6',    # Blue 500
    'accent': '#0891b2',       # Cyan 600 (positive returns)
    'target': '#d97706',       # Amber 600 (meta)
    'danger': '#dc2626',       # Red 600
    'background': '#f1f5f9',   # Slate 100 (light gray)
    'card': '#ffffff',         # White
    'text': '#1e293b',         # Slate 800 (dark)
    'text_muted': '#64748b',   # Slate 500
    'grid': '#e2e8f0',         # Slate 200
}

# Asset class buckets (pie slices)
ALLOCATION_COLORS = [
    '#1e40af',  # Blue 800
    '#ea580c',  # Orange 600
    '#16a34a',  # Green 600
    '#7c3aed',  # Violet 600
    '#be123c',  # Rose 700
    '#eab308',  # Yellow 500
]

CURRENCY_OPTIONS = [
    {'label': ' Real (R$)', 'value': 'BRL'},
    {'label': ' Dólar (US$)', 'value': 'USD'},
]

# Help texts
HELP_TEXTS = {
    'currency': 'Alterna a moeda de exibição. Valores são convertidos pela cotação USD/BRL do último dia útil de cada competência; rentabilidades são recalculadas considerando a variação cambial do mês. Sem cotação para a competência, o valor original é mantido.',
    'portfolio_return': 'Rentabilidade acumulada da carteira: retornos mensais compostos desde a primeira competência.',
    'target': 'Meta de retorno da política de investimentos (ex.: IPCA+5%). A meta mensal é o índice do mês mais o spread anual distribuído em 12 meses. Meses sem índice publicado não acumulam.',
    'latest_table': 'Posição consolidada por instituição na competência mais recente, na moeda selecionada.',
    'issuers': 'Exposição por emissor (10 maiores) na competência mais recente das posições por ativo.',
    'maturities': 'Vencimentos futuros das posições da competência mais recente, agrupados por mês (próximos 12 meses com vencimento).',
    'strategies': 'Alocação por classe de ativo, agrupada em Conta, Renda Fixa, Multimercado, Renda Variável, Alternativo e Outros.',
}


def create_help_icon(help_text: str, icon_id: str = None) -> html.Div:
    """Create a help icon with hover tooltip using CSS."""
    span_props = {'id': icon_id} if icon_id else {}
    return html.Div([
        html.Span(
            '?',
            className='help-icon',
            **span_props,
            style={
                'display': 'inline-flex',
                'alignItems': 'center',
                'justifyContent': 'center',
                'width': '16px',
                'height': '16px',
                'borderRadius': '50%',
                'backgroundColor': COLORS['grid'],
                'color': COLORS['text_muted'],
                'fontSize': '10px',
                'fontWeight': 'bold',
                'cursor': 'help',
                'marginLeft': '4px',
            }
        ),
        html.Div(
            help_text,
            className='help-tooltip',
            style={
                'display': 'none',
                'position': 'absolute',
                'backgroundColor': COLORS['card'],
                'color': COLORS['text'],
                'padding': '10px 14px',
                'borderRadius': '6px',
                'fontSize': '13px',
                'minWidth': '280px',
                'maxWidth': '400px',
                'width': 'max-content',
                'zIndex': '1000',
                'boxShadow': '0 4px 6px rgba(0, 0, 0, 0.3)',
                'top': '100%',
                'left': '0',
                'marginTop': '4px',
                'whiteSpace': 'normal',
                'lineHeight': '1.5',
            }
        )
    ], style={
        'display': 'inline-block',
        'position': 'relative',
        'verticalAlign': 'middle',
    }, className='help-icon-container')


def create_summary_card(label_id: str, label: str, value_id: str,
                        color: str, help_text: str = None,
                        sub_value_id: str = None) -> html.Div:
    """Create a summary statistics card."""
    label_content = [html.Span(label, id=label_id)]
    if help_text:
        label_content.append(create_help_icon(help_text, f'help-{value_id}'))

    children = [
        html.P(
            label_content,
            style={
                'color': COLORS['text_muted'],
                'margin': '0',
                'fontSize': '0.875rem',
                'display': 'flex',
                'alignItems': 'center',
                'justifyContent': 'center'
            }
        ),
        html.H2(id=value_id, children='--', style={'color': color, 'margin': '0.5rem 0'})
    ]

    if sub_value_id:
        children.append(
            html.P(id=sub_value_id, style={'margin': '0', 'fontSize': '0.875rem',
                                           'color': COLORS['text_muted']})
        )

    return html.Div(
        children,
        style={
            'backgroundColor': COLORS['card'],
            'padding': '1.5rem',
            'borderRadius': '0.75rem',
            'flex': '1',
            'textAlign': 'center'
        }
    )


def create_data_table_styles() -> dict:
    """Return common DataTable style configurations."""
    return {
        'style_header': {
            'backgroundColor': COLORS['card'],
            'color': COLORS['text'],
            'fontWeight': 'bold',
            'border': f"1px solid {COLORS['grid']}",
        },
        'style_cell': {
            'backgroundColor': COLORS['background'],
            'color': COLORS['text'],
            'border': f"1px solid {COLORS['grid']}",
            'textAlign': 'right',
            'padding': '8px 12px',
        },
        'style_data_conditional': [
            {
                'if': {'row_index': 'odd'},
                'backgroundColor': COLORS['card'],
            }
        ],
        'style_table': {
            'overflowY': 'auto',
            'maxHeight': '400px',
        },
    }


def create_error_banner(message: str) -> html.Div:
    """Explicit error state shown instead of a stale or empty chart."""
    return html.Div(
        [html.Strong('Erro ao carregar dados: '), message],
        style={
            'backgroundColor': '#fef2f2',
            'color': COLORS['danger'],
            'border': f"1px solid {COLORS['danger']}",
            'borderRadius': '0.5rem',
            'padding': '0.75rem 1rem',
            'margin': '0 2rem 1rem 2rem',
        }
    )


def create_warning_list(warnings: list[str]) -> html.Div:
    """Data-quality warnings (e.g. malformed competências)."""
    return html.Div(
        [html.P(f"⚠️ {w}", style={'margin': '0.25rem 0'}) for w in warnings],
        style={
            'color': COLORS['target'],
            'fontSize': '0.875rem',
            'margin': '0 2rem 1rem 2rem',
        }
    )
