#!/usr/bin/env python3
"""
Chart/figure creation functions for Carteira Analyzer dashboard.
"""

import pandas as pd
import plotly.graph_objects as go

from components import ALLOCATION_COLORS, COLORS
from periods import period_to_timestamp, previous_period, is_valid_period
from target import UNDEFINED_TARGET_LABEL


def _with_zero_point(series: pd.DataFrame, column: str) -> tuple[list, list]:
    """
    x/y lists for an accumulated column, starting at 0% one month before
    the first period.
    """
    valid = series[series['competencia'].map(is_valid_period)]
    x = [period_to_timestamp(p) for p in valid['competencia']]
    y = valid[column].tolist()

    if x:
        x = [period_to_timestamp(previous_period(valid['competencia'].iloc[0]))] + x
        y = [0.0] + y
    return x, y


def create_performance_figure(series: pd.DataFrame, target_label: str,
                              currency_symbol: str = 'R$') -> go.Figure:
    """Create the accumulated return chart: portfolio vs target.

    Args:
        series: Accumulated series from accumulate_performance()
        target_label: Legend label for the target curve
        currency_symbol: Symbol of the display currency (for the legend)

    Returns:
        Plotly Figure object
    """
    if series.empty:
        return create_empty_figure("Sem dados de performance")

    fig = go.Figure()

    x, y = _with_zero_point(series, 'rentabilidade_acumulada')
    fig.add_trace(go.Scatter(
        x=x,
        y=y,
        mode='lines+markers',
        name=f'Carteira ({currency_symbol})',
        line=dict(color=COLORS['primary'], width=3),
        marker=dict(size=7, color=COLORS['primary']),
        hovertemplate='%{y:.2f}%<extra></extra>'
    ))

    has_target = series['meta_acumulada'].notna().any()
    if has_target:
        x, y = _with_zero_point(series, 'meta_acumulada')
        fig.add_trace(go.Scatter(
            x=x,
            y=y,
            mode='lines',
            name=target_label,
            line=dict(color=COLORS['target'], width=2, dash='dash'),
            hovertemplate='%{y:.2f}%<extra></extra>'
        ))
    else:
        # Keep the distinction visible in the legend
        fig.add_trace(go.Scatter(
            x=[None],
            y=[None],
            mode='lines',
            name=UNDEFINED_TARGET_LABEL,
            line=dict(color=COLORS['text_muted'], width=2, dash='dot'),
            hoverinfo='skip'
        ))

    fig.update_layout(
        title=None,
        xaxis=dict(
            title=None,
            gridcolor=COLORS['grid'],
            tickfont=dict(color=COLORS['text_muted'], size=10),
            tickformat='%b %y',
            ticklabelmode='period',
            nticks=8
        ),
        yaxis=dict(
            title=None,
            gridcolor=COLORS['grid'],
            ticksuffix='%',
            tickfont=dict(color=COLORS['text_muted'], size=10),
        ),
        plot_bgcolor=COLORS['card'],
        paper_bgcolor=COLORS['background'],
        hovermode='x unified',
        hoverlabel=dict(
            font_size=14,
            bgcolor=COLORS['card'],
        ),
        autosize=True,
        margin=dict(l=0, r=0, t=10, b=20),
        dragmode=False,
        legend=dict(
            orientation='v',
            yanchor='top',
            y=0.99,
            xanchor='left',
            x=0.01,
            font=dict(color=COLORS['text'], size=14),
            bgcolor='rgba(255, 255, 255, 0.9)',
            borderwidth=0,
        )
    )

    return fig


def create_monthly_returns_figure(series: pd.DataFrame) -> go.Figure:
    """Bar chart of monthly portfolio returns, with the monthly target as a line."""
    if series.empty:
        return create_empty_figure("Sem dados de performance")

    valid = series[series['competencia'].map(is_valid_period)]
    x = [period_to_timestamp(p) for p in valid['competencia']]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=x,
        y=valid['rentabilidade_mensal'],
        name='Carteira',
        marker_color=[COLORS['accent'] if v >= 0 else COLORS['danger']
                      for v in valid['rentabilidade_mensal']],
        hovertemplate='%{y:.2f}%<extra></extra>'
    ))

    if valid['meta_mensal'].notna().any():
        fig.add_trace(go.Scatter(
            x=x,
            y=valid['meta_mensal'],
            mode='lines+markers',
            name='Meta mensal',
            line=dict(color=COLORS['target'], width=2),
            marker=dict(size=5),
            hovertemplate='%{y:.2f}%<extra></extra>'
        ))

    fig.update_layout(
        title=None,
        xaxis=dict(title=None, gridcolor=COLORS['grid'], tickformat='%b %y',
                   tickfont=dict(color=COLORS['text_muted'], size=10)),
        yaxis=dict(title=None, gridcolor=COLORS['grid'], ticksuffix='%',
                   tickfont=dict(color=COLORS['text_muted'], size=10)),
        plot_bgcolor=COLORS['card'],
        paper_bgcolor=COLORS['background'],
        hovermode='x unified',
        margin=dict(l=0, r=0, t=10, b=20),
        dragmode=False,
        legend=dict(font=dict(color=COLORS['text'], size=14)),
    )
    return fig


def _bar_layout(fig: go.Figure, currency_symbol: str, horizontal: bool = False) -> None:
    value_axis = dict(title=None, gridcolor=COLORS['grid'], tickprefix=f'{currency_symbol} ',
                      tickfont=dict(color=COLORS['text_muted'], size=10))
    category_axis = dict(title=None, tickfont=dict(color=COLORS['text_muted'], size=10))
    fig.update_layout(
        xaxis=value_axis if horizontal else category_axis,
        yaxis=category_axis if horizontal else value_axis,
        plot_bgcolor=COLORS['card'],
        paper_bgcolor=COLORS['background'],
        margin=dict(l=0, r=0, t=10, b=20),
        dragmode=False,
        showlegend=False,
    )


def create_issuer_figure(exposure: pd.DataFrame, currency_symbol: str = 'R$') -> go.Figure:
    """Horizontal bars of exposure by issuer (largest on top)."""
    if exposure.empty:
        return create_empty_figure("Sem dados de emissores")

    # Plotly draws the first category at the bottom
    data = exposure.iloc[::-1]
    fig = go.Figure(go.Bar(
        x=data['exposicao'],
        y=data['emissor'],
        orientation='h',
        marker_color=COLORS['secondary'],
        customdata=data['ativos'],
        hovertemplate=f'{currency_symbol} %{{x:,.2f}}<br>Ativos: %{{customdata}}<extra></extra>'
    ))
    _bar_layout(fig, currency_symbol, horizontal=True)
    return fig


def create_maturity_figure(schedule: pd.DataFrame, currency_symbol: str = 'R$') -> go.Figure:
    """Bars of upcoming maturities per month."""
    if schedule.empty:
        return create_empty_figure("Nenhum vencimento nos próximos meses")

    fig = go.Figure(go.Bar(
        x=schedule['mes'],
        y=schedule['total'],
        marker_color=COLORS['primary'],
        customdata=schedule['ativos'],
        hovertemplate=f'%{{x}}<br>{currency_symbol} %{{y:,.2f}}<br>Ativos: %{{customdata}}<extra></extra>'
    ))
    _bar_layout(fig, currency_symbol)
    fig.update_xaxes(type='category')
    return fig


def create_strategy_figure(breakdown: pd.DataFrame) -> go.Figure:
    """Donut of the allocation by asset class."""
    if breakdown.empty:
        return create_empty_figure("Sem dados de alocação")

    fig = go.Figure(go.Pie(
        labels=breakdown['classe'],
        values=breakdown['valor'],
        hole=0.5,
        sort=False,
        marker=dict(colors=ALLOCATION_COLORS[:len(breakdown)]),
        hovertemplate='%{label}: %{percent}<extra></extra>'
    ))
    fig.update_layout(
        paper_bgcolor=COLORS['background'],
        margin=dict(l=0, r=0, t=10, b=20),
        legend=dict(font=dict(color=COLORS['text'], size=12)),
    )
    return fig


def create_empty_figure(message: str = "Sem dados") -> go.Figure:
    """Create an empty placeholder figure with a message.

    Args:
        message: Message to display in the empty figure

    Returns:
        Plotly Figure object
    """
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        xref="paper",
        yref="paper",
        x=0.5,
        y=0.5,
        showarrow=False,
        font=dict(size=20, color=COLORS['text_muted'])
    )
    fig.update_layout(
        plot_bgcolor=COLORS['background'],
        paper_bgcolor=COLORS['background'],
        xaxis=dict(showgrid=False, showticklabels=False, zeroline=False),
        yaxis=dict(showgrid=False, showticklabels=False, zeroline=False),
        margin=dict(l=40, r=40, t=40, b=40),
        dragmode=False
    )
    return fig
