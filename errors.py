#!/usr/bin/env python3
"""
Error types for Carteira Analyzer.

Missing index quotes and unparsable targets are not errors: they are
reported as None and handled by the callers (fail-open). Only failures of
the external data sources are raised.
"""


class UpstreamFetchError(Exception):
    """A snapshot, index or policy source could not deliver its data."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")
