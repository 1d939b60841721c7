"""
Shared fixtures for Carteira Analyzer tests.
"""

import sys
from pathlib import Path

# Add project root to path so tests can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import pandas as pd

from target import ClientTarget


@pytest.fixture
def sample_snapshots():
    """Single BRL account, three months, delivered out of order."""
    return pd.DataFrame({
        'competencia': ['02/2024', '01/2024', '03/2024'],
        'patrimonio_inicial': [101000.0, 100000.0, 103020.0],
        'movimentacao': [0.0, 0.0, 0.0],
        'impostos': [0.0, 0.0, 0.0],
        'ganho_financeiro': [2020.0, 1000.0, -1030.2],
        'patrimonio_final': [103020.0, 101000.0, 101989.8],
        'rendimento': [2.0, 1.0, -1.0],
        'nome': ['Ana', 'Ana', 'Ana'],
        'instituicao': ['Banco Alfa', 'Banco Alfa', 'Banco Alfa'],
        'moeda': ['Real', 'Real', 'Real'],
    })


@pytest.fixture
def sample_ipca_series():
    """Monthly IPCA rates (decimal fractions), with February missing."""
    return {
        '01/2024': 0.0042,
        '03/2024': 0.0016,
    }


@pytest.fixture
def sample_fx_series():
    """USD/BRL month-end quotes."""
    return {
        '12/2023': 5.00,
        '01/2024': 5.50,
        '02/2024': 5.50,
        '03/2024': 4.95,
    }


@pytest.fixture
def ipca_target():
    """IPCA + 5% a.a. target."""
    return ClientTarget('IPCA+5%', 0.05, 'IPCA')


@pytest.fixture
def sample_consolidated():
    """Consolidated data for two clients, one of them with a USD account."""
    return pd.DataFrame({
        'competencia': ['01/2024', '01/2024', '02/2024', '02/2024', '01/2024', '02/2024'],
        'patrimonio_inicial': [1000.0, 100.0, 1010.0, 102.0, 500.0, 505.0],
        'movimentacao': [0.0] * 6,
        'impostos': [0.0] * 6,
        'ganho_financeiro': [10.0, 2.0, 10.1, 1.02, 5.0, 5.05],
        'patrimonio_final': [1010.0, 102.0, 1020.1, 103.02, 505.0, 510.05],
        'rendimento': [1.0, 2.0, 1.0, 1.0, 1.0, 1.0],
        'nome': ['Ana', 'Ana', 'Ana', 'Ana', 'Bruno', 'Bruno'],
        'instituicao': ['Banco Alfa', 'Broker Beta', 'Banco Alfa', 'Broker Beta',
                        'Banco Alfa', 'Banco Alfa'],
        'moeda': ['Real', 'Dolar', 'Real', 'Dolar', 'Real', 'Real'],
    })


@pytest.fixture
def sample_policies():
    """Policies: Ana has IPCA+5%, Bruno has no numeric target."""
    return pd.DataFrame({
        'cliente': ['Ana', 'Bruno'],
        'meta': ['IPCA+5%', 'Conservador'],
    })


@pytest.fixture
def sample_positions():
    """Per-asset positions of Ana: one row in 01/2024, five in 02/2024 (one in USD)."""
    return pd.DataFrame({
        'competencia': ['01/2024', '02/2024', '02/2024', '02/2024', '02/2024', '02/2024'],
        'ativo': ['CDB Alfa', 'CDB Alfa', 'LCA Alfa', 'NTN-B 2026', 'Treasury 2024', 'Conta Corrente'],
        'classe': ['CDI - Titulos', 'CDI - Titulos', 'CDI - Titulos', 'Inflação', 'Exterior',
                   'CDI - Liquidez'],
        'emissor': ['Banco Alfa', 'Banco Alfa', 'Banco Alfa', 'Tesouro Nacional', 'US Treasury', None],
        'vencimento': ['2024-06-10', '2024-06-10', '2024-06-25', '2026-08-15', '2024-03-31', None],
        'posicao': [900.0, 1000.0, 500.0, 2000.0, 100.0, 300.0],
        'rendimento': [1.0, 1.0, 0.8, 0.5, 2.0, 0.0],
        'nome': ['Ana'] * 6,
        'instituicao': ['Banco Alfa'] * 4 + ['Broker Beta', 'Banco Alfa'],
        'moeda': ['Real', 'Real', 'Real', 'Real', 'Dolar', 'Real'],
    })
