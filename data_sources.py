#!/usr/bin/env python3
"""
Snapshot, position and policy sources for Carteira Analyzer.

Consolidated performance, per-asset positions and investment policies
arrive as CSV exports with the column names used by the ingestion side
('Competencia', 'Patrimonio Inicial', 'Classe do ativo', 'Meta de Retorno', ...).
They are normalized here to the snake_case columns the calculator works
with. Any failure to read a source is raised as UpstreamFetchError;
nothing is partially loaded.
"""

import re

import pandas as pd

from errors import UpstreamFetchError

CONSOLIDATED_COLUMNS = {
    'Competencia': 'competencia',
    'Competência': 'competencia',
    'Patrimonio Inicial': 'patrimonio_inicial',
    'Movimentação': 'movimentacao',
    'Movimentacao': 'movimentacao',
    'Impostos': 'impostos',
    'Patrimonio Final': 'patrimonio_final',
    'Ganho Financeiro': 'ganho_financeiro',
    'Rendimento': 'rendimento',
    'Nome': 'nome',
    'Instituicao': 'instituicao',
    'Instituição': 'instituicao',
    'Moeda': 'moeda',
    'nomeConta': 'conta',
}

POSITION_COLUMNS = {
    'Competencia': 'competencia',
    'Competência': 'competencia',
    'Ativo': 'ativo',
    'Classe do ativo': 'classe',
    'Emissor': 'emissor',
    'Vencimento': 'vencimento',
    'Posicao': 'posicao',
    'Posição': 'posicao',
    'Rendimento': 'rendimento',
    'Taxa': 'taxa',
    'Nome': 'nome',
    'Instituicao': 'instituicao',
    'Instituição': 'instituicao',
    'Moeda': 'moeda',
    'nomeConta': 'conta',
}

POLICY_COLUMNS = {
    'Cliente': 'cliente',
    'Meta de Retorno': 'meta',
}

REQUIRED_CONSOLIDATED = {'competencia', 'rendimento', 'nome'}
REQUIRED_POLICIES = {'cliente', 'meta'}
REQUIRED_POSITIONS = {'competencia', 'nome', 'posicao'}

_PAT_DAY_MONTH_YEAR = re.compile(r'^\d{1,2}/\d{1,2}/\d{4}$')

NUMERIC_COLUMNS = [
    'patrimonio_inicial', 'movimentacao', 'impostos',
    'patrimonio_final', 'ganho_financeiro', 'rendimento',
]


def _read_csv(source, name: str) -> pd.DataFrame:
    try:
        return pd.read_csv(source, dtype=str)
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise UpstreamFetchError(name, str(e)) from e


def _parse_number(value) -> float:
    """Parse '1.234,56', '1234.56' or '' into a float (NaN when empty)."""
    if value is None or pd.isna(value):
        return float('nan')
    text = str(value).strip().replace('%', '')
    if not text:
        return float('nan')
    if ',' in text:
        text = text.replace('.', '').replace(',', '.')
    return float(text)


def normalize_consolidated(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename export columns and parse numbers.

    Raises:
        UpstreamFetchError: if required columns are missing or numbers
                            cannot be parsed
    """
    df = df.rename(columns=CONSOLIDATED_COLUMNS)

    missing = REQUIRED_CONSOLIDATED - set(df.columns)
    if missing:
        raise UpstreamFetchError('consolidado', f"colunas ausentes: {sorted(missing)}")

    df = df.copy()
    for col in NUMERIC_COLUMNS:
        if col in df.columns:
            try:
                df[col] = df[col].map(_parse_number)
            except ValueError as e:
                raise UpstreamFetchError('consolidado', f"valor inválido em '{col}': {e}") from e

    df['competencia'] = df['competencia'].astype(str).str.strip()
    df['nome'] = df['nome'].astype(str).str.strip()
    if 'moeda' not in df.columns:
        df['moeda'] = 'Real'
    return df


def load_consolidated(source) -> pd.DataFrame:
    """Load a consolidated performance CSV (path or file-like)."""
    return normalize_consolidated(_read_csv(source, 'consolidado'))


def normalize_policies(df: pd.DataFrame) -> pd.DataFrame:
    """Rename policy export columns ('Cliente', 'Meta de Retorno')."""
    df = df.rename(columns=POLICY_COLUMNS)

    missing = REQUIRED_POLICIES - set(df.columns)
    if missing:
        raise UpstreamFetchError('politicas', f"colunas ausentes: {sorted(missing)}")

    df = df.copy()
    df['cliente'] = df['cliente'].astype(str).str.strip()
    return df


def load_policies(source) -> pd.DataFrame:
    """Load an investment policy CSV (path or file-like)."""
    return normalize_policies(_read_csv(source, 'politicas'))


def parse_maturity(value) -> str | None:
    """Parse a maturity date ('DD/MM/YYYY' or ISO) into 'YYYY-MM-DD' (None when absent)."""
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    if _PAT_DAY_MONTH_YEAR.match(text):
        date = pd.to_datetime(text, format='%d/%m/%Y', errors='coerce')
    else:
        date = pd.to_datetime(text, errors='coerce')
    if pd.isna(date):
        return None
    return date.strftime('%Y-%m-%d')


def normalize_positions(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename per-asset position export columns and parse numbers and dates.

    Raises:
        UpstreamFetchError: if required columns are missing or numbers
                            cannot be parsed
    """
    df = df.rename(columns=POSITION_COLUMNS)

    missing = REQUIRED_POSITIONS - set(df.columns)
    if missing:
        raise UpstreamFetchError('posicoes', f"colunas ausentes: {sorted(missing)}")

    df = df.copy()
    for col in ['posicao', 'rendimento']:
        if col in df.columns:
            try:
                df[col] = df[col].map(_parse_number)
            except ValueError as e:
                raise UpstreamFetchError('posicoes', f"valor inválido em '{col}': {e}") from e

    df['competencia'] = df['competencia'].astype(str).str.strip()
    df['nome'] = df['nome'].astype(str).str.strip()
    if 'vencimento' in df.columns:
        df['vencimento'] = df['vencimento'].map(parse_maturity)
    if 'moeda' not in df.columns:
        df['moeda'] = 'Real'
    return df


def load_positions(source) -> pd.DataFrame:
    """Load a per-asset position CSV (path or file-like)."""
    return normalize_positions(_read_csv(source, 'posicoes'))


def list_clients(consolidated: pd.DataFrame) -> list[str]:
    """Sorted list of client names present in the consolidated data."""
    if consolidated is None or consolidated.empty:
        return []
    return sorted(consolidated['nome'].dropna().unique().tolist())


def fetch_snapshots(consolidated: pd.DataFrame, client: str) -> pd.DataFrame:
    """
    All snapshot rows of a client, in source order (not necessarily sorted).

    Raises:
        UpstreamFetchError: if no consolidated data was loaded
    """
    if consolidated is None:
        raise UpstreamFetchError('consolidado', 'dados não carregados')
    if consolidated.empty:
        return consolidated.copy()
    return consolidated[consolidated['nome'] == client].reset_index(drop=True)


def fetch_client_target(policies: pd.DataFrame | None, client: str) -> str | None:
    """Return-target policy string of a client, or None if absent."""
    if policies is None or policies.empty:
        return None

    rows = policies[policies['cliente'] == client]
    if rows.empty:
        return None

    meta = rows['meta'].iloc[0]
    if meta is None or pd.isna(meta) or not str(meta).strip():
        return None
    return str(meta).strip()


def fetch_positions(positions: pd.DataFrame | None, client: str) -> pd.DataFrame:
    """Per-asset position rows of a client (empty when no positions were loaded)."""
    if positions is None or positions.empty:
        return pd.DataFrame()
    return positions[positions['nome'] == client].reset_index(drop=True)


def build_demo_data() -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Deterministic demo data: two clients, BRL and USD accounts.

    'Cliente Demo' has a BRL account and a USD account with an 'IPCA+5%'
    policy. 'Cliente Sem Meta' has no policy.

    Returns:
        tuple: (consolidated, policies), already normalized
    """
    periods = [f"{m:02d}/2024" for m in range(1, 13)] + [f"{m:02d}/2025" for m in range(1, 7)]
    returns_brl = [0.9, 1.1, -0.4, 0.8, 1.2, 0.7, 1.0, 0.6, -0.2, 1.3, 0.9, 0.8,
                   1.1, 0.5, 0.9, 1.0, -0.3, 1.2]
    returns_usd = [0.5, 1.8, -1.2, 0.9, 2.1, -0.6, 1.4, 0.3, -0.9, 2.2, 1.0, 0.4,
                   1.6, -0.5, 0.8, 1.9, 0.2, 1.1]

    rows = []
    accounts = [
        ('Cliente Demo', 'Banco Alfa', 'Real', 500000.0, returns_brl),
        ('Cliente Demo', 'Broker Beta', 'Dolar', 80000.0, returns_usd),
        ('Cliente Sem Meta', 'Banco Alfa', 'Real', 250000.0, returns_brl),
    ]
    for client, institution, currency, initial, returns in accounts:
        value = initial
        for period, rend in zip(periods, returns):
            gain = value * rend / 100
            rows.append({
                'competencia': period,
                'patrimonio_inicial': value,
                'movimentacao': 0.0,
                'impostos': 0.0,
                'ganho_financeiro': gain,
                'patrimonio_final': value + gain,
                'rendimento': rend,
                'nome': client,
                'instituicao': institution,
                'moeda': currency,
            })
            value += gain

    consolidated = pd.DataFrame(rows)
    policies = pd.DataFrame({
        'cliente': ['Cliente Demo'],
        'meta': ['IPCA+5%'],
    })
    return consolidated, policies


def build_demo_positions() -> pd.DataFrame:
    """
    Deterministic per-asset positions for 'Cliente Demo' (05/2025 and 06/2025).

    Returns:
        Normalized positions DataFrame
    """
    assets = [
        # ativo, classe, emissor, vencimento, taxa, instituicao, moeda, posicao
        ('CDB Banco Alfa', 'CDI - Titulos', 'Banco Alfa', '2027-03-15', '110% CDI', 'Banco Alfa', 'Real', 150000.0),
        ('LCA Banco Alfa', 'CDI - Titulos', 'Banco Alfa', '2027-09-20', '95% CDI', 'Banco Alfa', 'Real', 90000.0),
        ('NTN-B 2030', 'Inflação', 'Tesouro Nacional', '2030-08-15', 'IPCA + 6,1%', 'Banco Alfa', 'Real', 160000.0),
        ('LTN 2028', 'Pré Fixado', 'Tesouro Nacional', '2028-01-01', '12,4%', 'Banco Alfa', 'Real', 60000.0),
        ('Fundo Multi', 'Multimercado', 'Gestora Gama', None, None, 'Banco Alfa', 'Real', 50000.0),
        ('Conta Corrente', 'CDI - Liquidez', 'Banco Alfa', None, None, 'Banco Alfa', 'Real', 20000.0),
        ('ETF S&P 500', 'Exterior', 'Gestora Delta', None, None, 'Broker Beta', 'Dolar', 65000.0),
        ('Treasury 2029', 'Exterior', 'US Treasury', '2029-05-15', '4,2%', 'Broker Beta', 'Dolar', 25000.0),
    ]

    rows = []
    for period, scale in [('05/2025', 0.99), ('06/2025', 1.0)]:
        for ativo, classe, emissor, vencimento, taxa, instituicao, moeda, posicao in assets:
            rows.append({
                'competencia': period,
                'ativo': ativo,
                'classe': classe,
                'emissor': emissor,
                'vencimento': vencimento,
                'taxa': taxa,
                'posicao': round(posicao * scale, 2),
                'rendimento': 0.8,
                'nome': 'Cliente Demo',
                'instituicao': instituicao,
                'moeda': moeda,
            })
    return pd.DataFrame(rows)
