#!/usr/bin/env python3
"""
Dash application factory for Carteira Analyzer.
"""

import pandas as pd
from dash import Dash

from callbacks import register_callbacks
from layout import create_layout


def create_app(consolidated: pd.DataFrame = None,
               policies: pd.DataFrame = None,
               positions: pd.DataFrame = None) -> Dash:
    """
    Create the Dash application.

    Args:
        consolidated: Normalized consolidated performance data (optional)
        policies: Normalized investment policy data (optional)
        positions: Normalized per-asset positions (optional)

    Returns:
        Configured Dash application
    """
    app = Dash(__name__, suppress_callback_exceptions=True)
    app.title = 'Carteira Analyzer'
    app.layout = create_layout(consolidated, policies, positions)
    register_callbacks(app)
    return app
