#!/usr/bin/env python3
"""
Client return target (meta de retorno) parsing.

Policies are free text such as 'IPCA+5%' or 'CDI + 1,5% a.a.'. The first
number found is the annual spread in percent. When no number is found the
target is undefined and no target series is computed for the client.
"""

import math
import re
from typing import NamedTuple

DEFAULT_TARGET_INDEX = 'IPCA'
TARGET_INDICES = ('IPCA', 'INPC', 'CDI')
UNDEFINED_TARGET_LABEL = 'Meta não definida'

_PAT_NUMBER = re.compile(r'\d*[.,]?\d+')


class ClientTarget(NamedTuple):
    meta: str
    annual_rate: float | None
    index: str = DEFAULT_TARGET_INDEX

    @property
    def is_defined(self) -> bool:
        return self.annual_rate is not None


def parse_target_rate(policy) -> float | None:
    """
    Extract the annual target rate from a policy string.

    Args:
        policy: Free text like 'IPCA+5%' or 'CDI + 1,5%'

    Returns:
        Annual rate as decimal fraction (0.05 for 5%), or None if the
        string has no number
    """
    if not isinstance(policy, str):
        return None

    match = _PAT_NUMBER.search(policy)
    if not match:
        return None
    return float(match.group(0).replace(',', '.')) / 100


def parse_target_index(policy) -> str:
    """Benchmark index named in the policy (IPCA when none is named)."""
    if isinstance(policy, str):
        upper = policy.upper()
        for name in TARGET_INDICES:
            if name in upper:
                return name
    return DEFAULT_TARGET_INDEX


def build_client_target(policy) -> ClientTarget | None:
    """
    Build a ClientTarget from a policy string.

    Returns None when the client has no policy at all. A policy without a
    number gives a target with annual_rate None (undefined).
    """
    if policy is None or (isinstance(policy, float) and math.isnan(policy)):
        return None
    policy = str(policy).strip()
    if not policy:
        return None
    return ClientTarget(policy, parse_target_rate(policy), parse_target_index(policy))


def target_label(target: ClientTarget | None) -> str:
    """Label for charts and cards."""
    if target is None or not target.is_defined:
        return UNDEFINED_TARGET_LABEL
    return f"Meta ({target.meta})"
