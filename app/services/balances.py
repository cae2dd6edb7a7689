"""
Per-chain balance fetching.

``fetch_chain_balance`` reads the native balance and every configured token
balance for one address on one chain. Only a malformed address is an error;
node failures degrade the affected field to zero and are logged.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from ..core.chain_registry import ChainDescriptor, ChainRegistry, get_chain_registry
from ..core.chain_types import ChainFamily, ChainRef, TokenSymbol
from ..core.errors import InvalidAddress, WalletError
from ..providers.evm_rpc import EvmRpcClient
from ..types.wallet import ChainBalance, TokenBalance
from .address import is_valid_address_for_family, normalize_evm_address
from .units import format_units

logger = logging.getLogger(__name__)

RpcClientFactory = Callable[[str], EvmRpcClient]


async def fetch_token_balance(
    client: EvmRpcClient,
    descriptor: ChainDescriptor,
    symbol: TokenSymbol,
    owner: str,
) -> TokenBalance:
    """Read ``balanceOf`` and ``decimals`` for one configured token.

    Decimals are always read from the contract; test deployments do not
    necessarily match mainnet.
    """
    configured = descriptor.tokens[symbol]
    contract = normalize_evm_address(configured)
    raw = await client.erc20_balance_of(contract, owner)
    decimals = await client.erc20_decimals(contract)
    return TokenBalance(symbol=symbol, raw=raw, decimals=decimals, amount=format_units(raw, decimals))


async def fetch_chain_balance(
    address: str,
    chain: ChainRef,
    *,
    registry: Optional[ChainRegistry] = None,
    rpc_client_factory: RpcClientFactory = EvmRpcClient,
) -> ChainBalance:
    """
    Fetch native and token balances for ``address`` on ``chain``.

    Args:
        address: Wallet address in the chain family's format
        chain: Chain key, alias, numeric id or CAIP-2 id
        registry: Registry override (defaults to the process registry)
        rpc_client_factory: Callable building an RPC client for a URL

    Returns:
        ChainBalance with one entry per configured token

    Raises:
        InvalidAddress: address is malformed for the chain family
        ChainNotFound: chain is not in the registry
    """
    registry = registry or get_chain_registry()
    descriptor = registry.chain_by_id(chain)
    symbols: List[TokenSymbol] = list(descriptor.tokens.keys())

    if not is_valid_address_for_family(address, descriptor.family):
        raise InvalidAddress(
            f"Invalid wallet address for {descriptor.name}",
            details={"address": address, "chain": descriptor.key.value},
        )

    if descriptor.family is ChainFamily.SOLANA:
        # Served by a different protocol client; report zeros.
        return ChainBalance.zero(descriptor.key, symbols)

    owner = normalize_evm_address(address)
    errors: List[str] = []
    native = Decimal("0")
    tokens: Dict[TokenSymbol, Decimal] = {}

    async with rpc_client_factory(descriptor.rpc_url) as client:
        try:
            native = format_units(await client.get_balance(owner), descriptor.native_decimals)
        except WalletError as exc:
            errors.append(descriptor.native_symbol)
            logger.warning(
                "native balance fetch failed",
                extra={"event": "native_balance_failed", "chain": descriptor.key.value, "error": str(exc)},
            )

        for symbol in symbols:
            try:
                balance = await fetch_token_balance(client, descriptor, symbol, owner)
                tokens[symbol] = balance.amount
            except (WalletError, ValueError) as exc:
                tokens[symbol] = Decimal("0")
                errors.append(symbol.value)
                logger.warning(
                    "token balance fetch failed",
                    extra={
                        "event": "token_balance_failed",
                        "chain": descriptor.key.value,
                        "token": symbol.value,
                        "error": str(exc),
                    },
                )

    return ChainBalance(chain=descriptor.key, native=native, tokens=tokens, errors=errors)


__all__ = ["fetch_chain_balance", "fetch_token_balance"]
