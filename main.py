#!/usr/bin/env python3
"""
Carteira Analyzer - Client portfolio performance dashboard.

Shows accumulated portfolio returns against the client's return target
(index + spread), in BRL or USD.
"""

import argparse
import sys

from dashboard import create_app
from errors import UpstreamFetchError


def main():
    """Main entry point for the application."""
    parser = argparse.ArgumentParser(
        description='Carteira Analyzer - Client portfolio performance dashboard'
    )
    parser.add_argument(
        '--consolidado',
        type=str,
        help='Path to the consolidated performance CSV'
    )
    parser.add_argument(
        '--politicas',
        type=str,
        help='Path to the investment policy CSV (Cliente, Meta de Retorno)'
    )
    parser.add_argument(
        '--posicoes',
        type=str,
        help='Path to the per-asset position CSV (Ativo, Emissor, Vencimento, ...)'
    )
    parser.add_argument(
        '--demo',
        action='store_true',
        help='Start with built-in demo data'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=8050,
        help='Port to serve the dashboard on'
    )
    args = parser.parse_args()

    print("Carteira Analyzer")
    print("=" * 40)

    consolidated = None
    policies = None
    positions = None
    try:
        if args.consolidado:
            from data_sources import load_consolidated
            print(f"Carregando: {args.consolidado}")
            consolidated = load_consolidated(args.consolidado)
            print(f"Registros carregados: {len(consolidated)}")
        if args.politicas:
            from data_sources import load_policies
            print(f"Carregando: {args.politicas}")
            policies = load_policies(args.politicas)
        if args.posicoes:
            from data_sources import load_positions
            print(f"Carregando: {args.posicoes}")
            positions = load_positions(args.posicoes)
            print(f"Posições carregadas: {len(positions)}")
    except UpstreamFetchError as e:
        print(f"Erro ao carregar dados: {e}")
        sys.exit(1)

    if consolidated is None and args.demo:
        from data_sources import build_demo_data, build_demo_positions
        print("Usando dados de demonstração.")
        consolidated, policies = build_demo_data()
        if positions is None:
            positions = build_demo_positions()
    elif consolidated is None:
        print("Iniciando sem dados. Use --consolidado ou --demo.")

    app = create_app(consolidated, policies, positions)

    print()
    print(f"Iniciando dashboard em http://127.0.0.1:{args.port}")
    print("Pressione Ctrl+C para encerrar")
    print()

    app.run(debug=True, port=args.port)


if __name__ == "__main__":
    main()
