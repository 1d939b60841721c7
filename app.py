#!/usr/bin/env python3
"""
Hosted entry point for Carteira Analyzer.
Runs the Dash app with demo data on the host/port expected by the platform.
"""

from dashboard import create_app
from data_sources import build_demo_data, build_demo_positions

app = create_app(*build_demo_data(), build_demo_positions())
server = app.server  # For WSGI compatibility

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=7860, debug=False)
