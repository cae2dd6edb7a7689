#!/usr/bin/env python3
"""Simple CLI for exercising the wallet services locally"""

import argparse
import asyncio
import json
import sys

from app.core.chain_registry import get_chain_registry
from app.core.errors import WalletError
from app.logging_config import setup_logging
from app.services.address_generator import generate_address
from app.services.identity import resolve_deposit_addresses
from app.services.portfolio import aggregate
from app.services.withdrawal import build_withdrawal
from app.types import PortfolioSnapshot


def print_portfolio(snapshot: PortfolioSnapshot):
    """Pretty print a portfolio snapshot"""
    print("\n📊 Portfolio")
    print("=" * 50)
    print(f"Address:   {snapshot.address}")
    print(f"Portfolio: ${snapshot.portfolio:,.2f} USD")
    print(f"Cash:      ${snapshot.cash:,.2f} USD")

    registry = get_chain_registry()
    print("\nChains:")
    print("-" * 50)
    for key, balance in snapshot.chains.items():
        descriptor = registry.chain_by_id(key)
        tokens = "  ".join(f"{amount} {symbol.value}" for symbol, amount in balance.tokens.items())
        print(f"{descriptor.name:<18} {balance.native} {descriptor.native_symbol:<4} {tokens}")
        if balance.errors:
            print(f"    ⚠️  degraded: {', '.join(balance.errors)}")

    if snapshot.prices:
        prices = ", ".join(f"{family.value}=${price}" for family, price in snapshot.prices.items())
        print(f"\nPrices: {prices}")


def cli_address(seed: str):
    print(generate_address(seed))


async def cli_session(user_id, email):
    resolution = await resolve_deposit_addresses(user_id=user_id, email=email)
    print(f"🔑 Session for {resolution.user_key} ({resolution.source})")
    print(f"EVM:    {resolution.default_evm_address}")
    print(f"Solana: {resolution.default_sol_address}")
    print(f"Strategy: {resolution.strategy}")
    print(json.dumps(resolution.deposit_addresses.addresses, indent=2))


async def cli_portfolio(address: str, chains):
    print(f"🔍 Fetching portfolio for {address}...")
    chain_list = [c.strip() for c in chains.split(",") if c.strip()] if chains else None
    snapshot = await aggregate(address, chain_list)
    print_portfolio(snapshot)


async def cli_withdraw(destination: str, amount: str, chain: str, token: str):
    call = await build_withdrawal(destination, amount, chain, token)
    print(f"🧾 {amount} {call.token.value} → {call.destination} on chain {call.chain_id}")
    print(json.dumps(call.as_transaction(), indent=2))


def cli_chains():
    registry = get_chain_registry()
    for descriptor in registry.chains():
        marker = "*" if descriptor.key is registry.default.key else " "
        tokens = ", ".join(symbol.value for symbol in descriptor.tokens)
        print(f"{marker} {descriptor.key.value:<14} {descriptor.caip2:<18} {descriptor.name:<18} [{tokens}]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Acumen Wallet CLI")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command")

    address_parser = subparsers.add_parser("address", help="Derive a deterministic placeholder address")
    address_parser.add_argument("seed", help="Seed string, e.g. 'anonymous:evm'")

    session_parser = subparsers.add_parser("session", help="Resolve deposit addresses for a user")
    session_parser.add_argument("--user-id", help="Identity provider user id")
    session_parser.add_argument("--email", help="User email")

    portfolio_parser = subparsers.add_parser("portfolio", help="Aggregate balances across chains")
    portfolio_parser.add_argument("address", help="Wallet address")
    portfolio_parser.add_argument("--chains", help="Comma separated chains (default: all)")

    withdraw_parser = subparsers.add_parser("withdraw", help="Build an unsigned ERC-20 withdrawal")
    withdraw_parser.add_argument("destination", help="Recipient address")
    withdraw_parser.add_argument("amount", help="Amount, e.g. 10.50")
    withdraw_parser.add_argument("--chain", default="base", help="Chain (default: base)")
    withdraw_parser.add_argument("--token", default="USDC", help="Token symbol (default: USDC)")

    subparsers.add_parser("chains", help="List configured chains")

    return parser


async def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, json_logs=False)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "address":
            cli_address(args.seed)
        elif args.command == "session":
            await cli_session(args.user_id, args.email)
        elif args.command == "portfolio":
            await cli_portfolio(args.address, args.chains)
        elif args.command == "withdraw":
            await cli_withdraw(args.destination, args.amount, args.chain, args.token)
        elif args.command == "chains":
            cli_chains()
    except WalletError as e:
        print(f"❌ {e.code}: {e.message}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
