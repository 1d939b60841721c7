#!/usr/bin/env python3
"""
Period (competência) helpers for Carteira Analyzer.

A period is a calendar month written as 'MM/YYYY'. Strings are compared by
their chronological key, never lexicographically ('12/2024' < '01/2025').
Malformed strings map to EPOCH_KEY so that sorting never raises; bad rows
sink to the start and can be detected with is_valid_period().
"""

import re

import pandas as pd

EPOCH_KEY = (0, 0)

_PAT_MONTH_YEAR = re.compile(r'^(\d{1,2})/(\d{4})$')
_PAT_YEAR_MONTH = re.compile(r'^(\d{4})-(\d{1,2})(?:-\d{1,2})?$')


def parse_period(text) -> tuple[int, int] | None:
    """
    Parse a period string into (year, month).

    Accepts 'MM/YYYY' (canonical) and 'YYYY-MM' / 'YYYY-MM-DD'.

    Returns:
        (year, month) tuple, or None if the string is not a valid period
    """
    if not isinstance(text, str):
        return None

    text = text.strip()
    match = _PAT_MONTH_YEAR.match(text)
    if match:
        month, year = int(match.group(1)), int(match.group(2))
    else:
        match = _PAT_YEAR_MONTH.match(text)
        if not match:
            return None
        year, month = int(match.group(1)), int(match.group(2))

    if not 1 <= month <= 12:
        return None
    return year, month


def is_valid_period(text) -> bool:
    """Check whether a string is a parsable period."""
    return parse_period(text) is not None


def period_key(text) -> tuple[int, int]:
    """Chronological sort key for a period string (EPOCH_KEY if malformed)."""
    parsed = parse_period(text)
    return parsed if parsed is not None else EPOCH_KEY


def format_period(year: int, month: int) -> str:
    """Format (year, month) as 'MM/YYYY'."""
    return f"{month:02d}/{year:04d}"


def normalize_period(text) -> str | None:
    """Return the canonical 'MM/YYYY' form of a period, or None if malformed."""
    parsed = parse_period(text)
    if parsed is None:
        return None
    return format_period(*parsed)


def period_from_date(date) -> str:
    """Period containing a given date."""
    ts = pd.Timestamp(date)
    return format_period(ts.year, ts.month)


def previous_period(text) -> str:
    """
    Period immediately before the given one.

    January wraps to December of the previous year.

    Raises:
        ValueError: if the period is malformed
    """
    parsed = parse_period(text)
    if parsed is None:
        raise ValueError(f"Invalid period: {text!r}")

    year, month = parsed
    if month == 1:
        return format_period(year - 1, 12)
    return format_period(year, month - 1)


def compare_periods(a, b) -> int:
    """Compare two periods chronologically. Returns -1, 0 or 1."""
    key_a, key_b = period_key(a), period_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def sort_periods(periods) -> list:
    """Sort period strings in ascending chronological order (stable)."""
    return sorted(periods, key=period_key)


def period_to_timestamp(text) -> pd.Timestamp | None:
    """First day of the period as a Timestamp (for chart axes)."""
    parsed = parse_period(text)
    if parsed is None:
        return None
    year, month = parsed
    return pd.Timestamp(year=year, month=month, day=1)
