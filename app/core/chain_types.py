"""
Chain identification types and utilities.

Chains and tokens are closed enums so that an unknown chain or token is
rejected when it is parsed instead of silently falling back to a default:

- ``ChainKey``: logical chain identifier used throughout the service
  ("base", "polygon-amoy", ...)
- ``ChainFamily``: address format / CAIP-2 namespace of a chain
- ``TokenSymbol``: fungible tokens with a contract on supported chains
- ``PriceFamily``: native coins that are priced separately
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Union


class ChainFamily(str, Enum):
    """Address family of a chain."""

    EVM = "evm"
    SOLANA = "solana"

    @property
    def namespace(self) -> str:
        """CAIP-2 namespace for the family."""
        return "eip155" if self is ChainFamily.EVM else "solana"


class ChainKey(str, Enum):
    """Logical identifier of a supported chain."""

    ETHEREUM_SEPOLIA = "ethereum"
    BASE_SEPOLIA = "base"
    POLYGON_AMOY = "polygon-amoy"
    BNB_TESTNET = "bnb"
    SOLANA_DEVNET = "solana-devnet"


class TokenSymbol(str, Enum):
    """Tokens the service tracks. Both are USD stablecoins."""

    USDC = "USDC"
    USDT = "USDT"

    @property
    def is_stablecoin(self) -> bool:
        return self in STABLECOINS


class PriceFamily(str, Enum):
    """Native-coin families priced through the price oracle.

    Ethereum Sepolia and Base Sepolia both hold ETH and share a family.
    """

    ETH = "ETH"
    POL = "POL"
    BNB = "BNB"
    SOL = "SOL"

    @property
    def coingecko_id(self) -> str:
        return _COINGECKO_IDS[self]


STABLECOINS = frozenset({TokenSymbol.USDC, TokenSymbol.USDT})

_COINGECKO_IDS: Dict[PriceFamily, str] = {
    PriceFamily.ETH: "ethereum",
    PriceFamily.POL: "matic-network",
    PriceFamily.BNB: "binancecoin",
    PriceFamily.SOL: "solana",
}

# Aliases accepted from clients in addition to the enum values.
_CHAIN_ALIASES: Dict[str, ChainKey] = {
    "eth": ChainKey.ETHEREUM_SEPOLIA,
    "sepolia": ChainKey.ETHEREUM_SEPOLIA,
    "ethereum-sepolia": ChainKey.ETHEREUM_SEPOLIA,
    "base-sepolia": ChainKey.BASE_SEPOLIA,
    "polygon": ChainKey.POLYGON_AMOY,
    "amoy": ChainKey.POLYGON_AMOY,
    "bsc": ChainKey.BNB_TESTNET,
    "bnb-testnet": ChainKey.BNB_TESTNET,
    "sol": ChainKey.SOLANA_DEVNET,
    "solana": ChainKey.SOLANA_DEVNET,
    "solana-devnet": ChainKey.SOLANA_DEVNET,
}

ChainRef = Union[ChainKey, str, int]


def parse_chain_key(value: ChainRef) -> Optional[ChainKey]:
    """
    Convert a chain key or alias into a ``ChainKey``.

    Numeric chain ids and CAIP-2 strings are not handled here; the chain
    registry resolves those because their mapping is configuration.

    Examples:
        >>> parse_chain_key("base")
        <ChainKey.BASE_SEPOLIA: 'base'>
        >>> parse_chain_key("SOL")
        <ChainKey.SOLANA_DEVNET: 'solana-devnet'>
        >>> parse_chain_key("avalanche") is None
        True
    """
    if isinstance(value, ChainKey):
        return value
    if not isinstance(value, str):
        return None
    lowered = value.lower().strip()
    try:
        return ChainKey(lowered)
    except ValueError:
        return _CHAIN_ALIASES.get(lowered)


def parse_token_symbol(value: Union[TokenSymbol, str]) -> Optional[TokenSymbol]:
    """Case-insensitive token symbol parsing; ``None`` when unknown."""
    if isinstance(value, TokenSymbol):
        return value
    try:
        return TokenSymbol(str(value).strip().upper())
    except ValueError:
        return None


__all__ = [
    "ChainFamily",
    "ChainKey",
    "ChainRef",
    "TokenSymbol",
    "PriceFamily",
    "STABLECOINS",
    "parse_chain_key",
    "parse_token_symbol",
]
