"""
Tests for data_sources.py - Consolidated, position and policy CSV loading.
"""

import io

import pytest
import pandas as pd

from data_sources import (
    load_consolidated,
    load_policies,
    list_clients,
    fetch_snapshots,
    fetch_client_target,
    build_demo_data,
    load_positions,
    parse_maturity,
    fetch_positions,
    build_demo_positions,
)
from errors import UpstreamFetchError


CONSOLIDATED_CSV = """Competencia,Patrimonio Inicial,Movimentação,Impostos,Patrimonio Final,Ganho Financeiro,Rendimento,Nome,Instituição,Moeda,nomeConta
01/2024,"1.000,00",0,0,"1.010,00","10,00","1,00",Ana,Banco Alfa,Real,CC 1
02/2024,1010.00,0,0,1030.20,20.20,2.00,Ana,Banco Alfa,Real,CC 1
01/2024,"500,00",0,0,"505,00","5,00","1,00",Bruno,Banco Alfa,Real,CC 2
"""

POLICIES_CSV = """Cliente,Meta de Retorno
Ana,IPCA+5%
Bruno,
"""

POSITIONS_CSV = """Competência,Ativo,Classe do ativo,Emissor,Vencimento,Posição,Rendimento,Taxa,Nome,Instituição,Moeda
02/2024,CDB Alfa,CDI - Titulos,Banco Alfa,10/06/2024,"1.000,50","0,95",110% CDI,Ana,Banco Alfa,Real
02/2024,Fundo Multi,Multimercado,Gestora Gama,,"250,00","1,20",,Ana,Banco Alfa,Real
02/2024,LCA Gama,CDI - Titulos,Banco Gama,2025-01-15,300.00,0.80,95% CDI,Bruno,Banco Gama,Real
"""


class TestLoadConsolidated:
    """Tests for load_consolidated."""

    def test_columns_are_renamed(self):
        """Test that export columns map to snake_case."""
        df = load_consolidated(io.StringIO(CONSOLIDATED_CSV))
        for col in ['competencia', 'patrimonio_inicial', 'movimentacao', 'rendimento',
                    'nome', 'instituicao', 'moeda', 'conta']:
            assert col in df.columns

    def test_ptbr_numbers(self):
        """Test that '1.000,00' and '1010.00' both parse."""
        df = load_consolidated(io.StringIO(CONSOLIDATED_CSV))
        assert df['patrimonio_inicial'].tolist() == [1000.0, 1010.0, 500.0]
        assert df['rendimento'].tolist() == [1.0, 2.0, 1.0]

    def test_missing_columns_raise(self):
        """Test that a CSV without required columns is rejected."""
        with pytest.raises(UpstreamFetchError) as exc:
            load_consolidated(io.StringIO("Competencia,Nome\n01/2024,Ana\n"))
        assert exc.value.source == 'consolidado'

    def test_bad_number_raises(self):
        """Test that an unparsable number is rejected."""
        csv = "Competencia,Rendimento,Nome\n01/2024,abc,Ana\n"
        with pytest.raises(UpstreamFetchError):
            load_consolidated(io.StringIO(csv))

    def test_missing_file_raises(self, tmp_path):
        """Test that a missing file is an upstream error."""
        with pytest.raises(UpstreamFetchError):
            load_consolidated(tmp_path / 'nao_existe.csv')

    def test_default_currency(self):
        """Test that rows without 'Moeda' are treated as Real."""
        csv = "Competencia,Rendimento,Nome\n01/2024,1,Ana\n"
        df = load_consolidated(io.StringIO(csv))
        assert df['moeda'].tolist() == ['Real']


class TestPolicies:
    """Tests for load_policies and fetch_client_target."""

    def test_load_and_lookup(self):
        """Test policy lookup by client."""
        policies = load_policies(io.StringIO(POLICIES_CSV))
        assert fetch_client_target(policies, 'Ana') == 'IPCA+5%'

    def test_blank_policy_is_none(self):
        """Test that an empty policy cell gives None."""
        policies = load_policies(io.StringIO(POLICIES_CSV))
        assert fetch_client_target(policies, 'Bruno') is None

    def test_unknown_client_is_none(self, sample_policies):
        """Test a client without a policy row."""
        assert fetch_client_target(sample_policies, 'Carla') is None
        assert fetch_client_target(None, 'Ana') is None

    def test_missing_columns_raise(self):
        """Test that a policy CSV without 'Meta de Retorno' is rejected."""
        with pytest.raises(UpstreamFetchError):
            load_policies(io.StringIO("Cliente\nAna\n"))


class TestSnapshots:
    """Tests for list_clients and fetch_snapshots."""

    def test_list_clients(self, sample_consolidated):
        """Test sorted unique client names."""
        assert list_clients(sample_consolidated) == ['Ana', 'Bruno']
        assert list_clients(None) == []

    def test_fetch_snapshots(self, sample_consolidated):
        """Test that only the client's rows are returned."""
        snapshots = fetch_snapshots(sample_consolidated, 'Bruno')
        assert len(snapshots) == 2
        assert set(snapshots['nome']) == {'Bruno'}

    def test_fetch_snapshots_unknown_client(self, sample_consolidated):
        """Test that an unknown client gives no rows."""
        assert fetch_snapshots(sample_consolidated, 'Carla').empty

    def test_fetch_snapshots_without_data_raises(self):
        """Test that missing consolidated data is an upstream error."""
        with pytest.raises(UpstreamFetchError):
            fetch_snapshots(None, 'Ana')


class TestDemoData:
    """Tests for build_demo_data."""

    def test_shape(self):
        """Test clients, currencies and policies of the demo data."""
        consolidated, policies = build_demo_data()
        assert list_clients(consolidated) == ['Cliente Demo', 'Cliente Sem Meta']
        assert set(consolidated['moeda']) == {'Real', 'Dolar'}
        assert fetch_client_target(policies, 'Cliente Demo') == 'IPCA+5%'
        assert fetch_client_target(policies, 'Cliente Sem Meta') is None

    def test_deterministic(self):
        """Test that two calls build the same data."""
        a, _ = build_demo_data()
        b, _ = build_demo_data()
        pd.testing.assert_frame_equal(a, b)


class TestPositions:
    """Tests for load_positions, parse_maturity and fetch_positions."""

    def test_columns_and_numbers(self):
        """Test renamed columns with pt-BR numbers."""
        df = load_positions(io.StringIO(POSITIONS_CSV))

        for col in ['competencia', 'ativo', 'classe', 'emissor', 'vencimento',
                    'posicao', 'rendimento', 'taxa', 'nome', 'instituicao', 'moeda']:
            assert col in df.columns
        assert df['posicao'].iloc[0] == 1000.5
        assert df['rendimento'].iloc[0] == 0.95

    def test_maturities_normalized(self):
        """Test DD/MM/YYYY and ISO maturities, blank as None."""
        df = load_positions(io.StringIO(POSITIONS_CSV))
        assert df['vencimento'].tolist() == ['2024-06-10', None, '2025-01-15']

    @pytest.mark.parametrize('value,expected', [
        ('31/12/2027', '2027-12-31'),
        ('2027-12-31', '2027-12-31'),
        ('1/2/2028', '2028-02-01'),
        ('', None),
        (None, None),
        ('sem vencimento', None),
        ('31/02/2027', None),
    ])
    def test_parse_maturity(self, value, expected):
        """Test maturity parsing."""
        assert parse_maturity(value) == expected

    def test_missing_columns_raise(self):
        """Test that a position export without 'Posição' is rejected."""
        with pytest.raises(UpstreamFetchError) as exc:
            load_positions(io.StringIO("Competencia,Nome\n02/2024,Ana\n"))
        assert exc.value.source == 'posicoes'

    def test_bad_number_raises(self):
        """Test that an unparsable position is an upstream error."""
        csv = "Competencia,Nome,Posicao\n02/2024,Ana,abc\n"
        with pytest.raises(UpstreamFetchError):
            load_positions(io.StringIO(csv))

    def test_fetch_positions(self):
        """Test filtering by client."""
        df = load_positions(io.StringIO(POSITIONS_CSV))
        rows = fetch_positions(df, 'Ana')
        assert len(rows) == 2
        assert set(rows['nome']) == {'Ana'}

    def test_fetch_positions_without_data(self):
        """Test that positions are optional."""
        assert fetch_positions(None, 'Ana').empty
        assert fetch_positions(pd.DataFrame(), 'Ana').empty

    def test_demo_positions(self):
        """Test the demo positions: two periods, one client, BRL and USD assets."""
        df = build_demo_positions()

        assert set(df['competencia']) == {'05/2025', '06/2025'}
        assert set(df['nome']) == {'Cliente Demo'}
        assert set(df['moeda']) == {'Real', 'Dolar'}
        assert df['posicao'].gt(0).all()
