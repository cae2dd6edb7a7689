"""
Chain registry - static chain metadata for balance fetching and withdrawals.

The registry is built once from settings at process start and is read-only
afterwards. Lookups fail closed with ``ChainNotFound``; callers that want the
permissive behaviour use ``resolve_or_default`` explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..config import Settings, settings as default_settings
from .chain_types import (
    ChainFamily,
    ChainKey,
    ChainRef,
    PriceFamily,
    TokenSymbol,
    parse_chain_key,
    parse_token_symbol,
)
from .errors import ChainNotFound, RegistryConfigError, UnsupportedToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainDescriptor:
    """Static configuration for one chain."""

    key: ChainKey
    chain_id: int
    name: str
    family: ChainFamily
    rpc_url: str
    ws_url: str
    explorer_tx_template: str
    native_symbol: str
    native_decimals: int
    price_family: PriceFamily
    tokens: Mapping[TokenSymbol, str] = field(default_factory=dict)

    @property
    def caip2(self) -> str:
        """CAIP-2 identifier, e.g. ``eip155:84532``."""
        return f"{self.family.namespace}:{self.chain_id}"

    @property
    def is_evm(self) -> bool:
        return self.family is ChainFamily.EVM

    def explorer_tx_url(self, tx_hash: str) -> str:
        return self.explorer_tx_template.format(tx_hash=tx_hash)

    def token_address(self, symbol: Union[TokenSymbol, str]) -> Optional[str]:
        parsed = parse_token_symbol(symbol)
        if parsed is None:
            return None
        return self.tokens.get(parsed)


# Alchemy network slugs per chain; used when an Alchemy key is configured.
_ALCHEMY_SLUGS: Dict[ChainKey, str] = {
    ChainKey.ETHEREUM_SEPOLIA: "eth-sepolia",
    ChainKey.BASE_SEPOLIA: "base-sepolia",
    ChainKey.POLYGON_AMOY: "polygon-amoy",
    ChainKey.BNB_TESTNET: "bnb-testnet",
    ChainKey.SOLANA_DEVNET: "solana-devnet",
}

# Public endpoints used without an Alchemy key: (http, websocket).
_PUBLIC_ENDPOINTS: Dict[ChainKey, tuple[str, str]] = {
    ChainKey.ETHEREUM_SEPOLIA: ("https://ethereum-sepolia-rpc.publicnode.com", "wss://ethereum-sepolia-rpc.publicnode.com"),
    ChainKey.BASE_SEPOLIA: ("https://sepolia.base.org", "wss://base-sepolia-rpc.publicnode.com"),
    ChainKey.POLYGON_AMOY: ("https://rpc-amoy.polygon.technology", "wss://polygon-amoy-bor-rpc.publicnode.com"),
    ChainKey.BNB_TESTNET: ("https://data-seed-prebsc-1-s1.binance.org:8545", "wss://bsc-testnet-rpc.publicnode.com"),
    ChainKey.SOLANA_DEVNET: ("https://api.devnet.solana.com", "wss://api.devnet.solana.com"),
}

_DEFAULT_CHAINS: List[Dict[str, Any]] = [
    {
        "key": ChainKey.ETHEREUM_SEPOLIA,
        "chain_id": 11155111,
        "name": "Ethereum Sepolia",
        "family": ChainFamily.EVM,
        "explorer_tx_template": "https://sepolia.etherscan.io/tx/{tx_hash}",
        "native_symbol": "ETH",
        "native_decimals": 18,
        "price_family": PriceFamily.ETH,
        "tokens": {
            TokenSymbol.USDC: "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
            TokenSymbol.USDT: "0xaA8E23Fb1079EA71e0a56F48a2aA51851D8433D0",
        },
    },
    {
        "key": ChainKey.BASE_SEPOLIA,
        "chain_id": 84532,
        "name": "Base Sepolia",
        "family": ChainFamily.EVM,
        "explorer_tx_template": "https://sepolia.basescan.org/tx/{tx_hash}",
        "native_symbol": "ETH",
        "native_decimals": 18,
        "price_family": PriceFamily.ETH,
        "tokens": {
            TokenSymbol.USDC: "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
            TokenSymbol.USDT: "0x2d82C4b9ff582d02CC89675f2D086Cb7953A555a",
        },
    },
    {
        "key": ChainKey.POLYGON_AMOY,
        "chain_id": 80002,
        "name": "Polygon Amoy",
        "family": ChainFamily.EVM,
        "explorer_tx_template": "https://amoy.polygonscan.com/tx/{tx_hash}",
        "native_symbol": "POL",
        "native_decimals": 18,
        "price_family": PriceFamily.POL,
        "tokens": {
            TokenSymbol.USDC: "0x41E94Eb019C0762f9Bfcf9Fb1E58725BfB0e7582",
            TokenSymbol.USDT: "0x6C5131734E5C40a504c18c26fa96F8EBDbb0ff30",
        },
    },
    {
        "key": ChainKey.BNB_TESTNET,
        "chain_id": 97,
        "name": "BNB Testnet",
        "family": ChainFamily.EVM,
        "explorer_tx_template": "https://testnet.bscscan.com/tx/{tx_hash}",
        "native_symbol": "BNB",
        "native_decimals": 18,
        "price_family": PriceFamily.BNB,
        "tokens": {
            TokenSymbol.USDC: "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
            TokenSymbol.USDT: "0x2d82C4b9ff582d02CC89675f2D086Cb7953A555a",
        },
    },
    {
        "key": ChainKey.SOLANA_DEVNET,
        "chain_id": 101,
        "name": "Solana Devnet",
        "family": ChainFamily.SOLANA,
        "explorer_tx_template": "https://explorer.solana.com/tx/{tx_hash}?cluster=devnet",
        "native_symbol": "SOL",
        "native_decimals": 9,
        "price_family": PriceFamily.SOL,
        "tokens": {
            TokenSymbol.USDC: "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
            TokenSymbol.USDT: "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
        },
    },
]


class ChainRegistry:
    """
    Immutable chain lookup table.

    Chains can be referenced by ``ChainKey``, key/alias string, numeric
    chain id (int or digit string) or CAIP-2 id (``eip155:84532``).
    """

    def __init__(self, descriptors: Iterable[ChainDescriptor], default: ChainKey):
        by_key: Dict[ChainKey, ChainDescriptor] = {}
        by_numeric: Dict[int, ChainDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.key in by_key:
                raise RegistryConfigError(f"Duplicate chain key {descriptor.key.value}")
            if descriptor.chain_id in by_numeric:
                raise RegistryConfigError(
                    f"Chain id {descriptor.chain_id} is mapped to both "
                    f"{by_numeric[descriptor.chain_id].key.value} and {descriptor.key.value}"
                )
            _validate_tokens(descriptor)
            by_key[descriptor.key] = descriptor
            by_numeric[descriptor.chain_id] = descriptor

        if default not in by_key:
            raise RegistryConfigError(f"Default chain {default.value} is not configured")

        self._by_key: Mapping[ChainKey, ChainDescriptor] = MappingProxyType(by_key)
        self._by_numeric: Mapping[int, ChainDescriptor] = MappingProxyType(by_numeric)
        self._by_caip2: Mapping[str, ChainDescriptor] = MappingProxyType(
            {descriptor.caip2: descriptor for descriptor in by_key.values()}
        )
        self._default = default

    @property
    def default(self) -> ChainDescriptor:
        return self._by_key[self._default]

    def chains(self) -> List[ChainDescriptor]:
        return list(self._by_key.values())

    def evm_chains(self) -> List[ChainDescriptor]:
        return [descriptor for descriptor in self._by_key.values() if descriptor.is_evm]

    def find(self, chain: ChainRef) -> Optional[ChainDescriptor]:
        """Resolve ``chain`` or return ``None``."""
        if isinstance(chain, bool):
            return None
        if isinstance(chain, int):
            return self._by_numeric.get(chain)

        key = parse_chain_key(chain)
        if key is not None:
            return self._by_key.get(key)

        text = str(chain).strip().lower()
        if text.isascii() and text.isdigit():
            return self._by_numeric.get(int(text))
        return self._by_caip2.get(text)

    def chain_by_id(self, chain: ChainRef) -> ChainDescriptor:
        descriptor = self.find(chain)
        if descriptor is None:
            raise ChainNotFound(f"Unknown chain: {chain!r}", details={"chain": str(chain)})
        return descriptor

    def resolve_or_default(self, chain: ChainRef) -> ChainDescriptor:
        """Lenient lookup: unknown chains resolve to the default chain."""
        descriptor = self.find(chain)
        if descriptor is None:
            logger.warning(
                "unknown chain resolved to default",
                extra={"event": "chain_default_fallback", "chain": str(chain), "default": self._default.value},
            )
            return self.default
        return descriptor

    def http_rpc_url(self, chain: ChainRef) -> str:
        return self.chain_by_id(chain).rpc_url

    def streaming_rpc_url(self, chain: ChainRef) -> str:
        return self.chain_by_id(chain).ws_url

    def explorer_tx_url(self, chain: ChainRef, tx_hash: str) -> str:
        return self.chain_by_id(chain).explorer_tx_url(tx_hash)

    def token_address(self, chain: ChainRef, symbol: Union[TokenSymbol, str]) -> Optional[str]:
        return self.chain_by_id(chain).token_address(symbol)

    def require_token_address(self, chain: ChainRef, symbol: Union[TokenSymbol, str]) -> str:
        descriptor = self.chain_by_id(chain)
        address = descriptor.token_address(symbol)
        if not address:
            raise UnsupportedToken(
                f"Token {symbol} is not supported on {descriptor.name}",
                details={"chain": descriptor.key.value, "token": str(getattr(symbol, "value", symbol))},
            )
        return address


def _validate_tokens(descriptor: ChainDescriptor) -> None:
    # Local import: address helpers live in the service layer.
    from ..services.address import is_valid_address_for_family

    for symbol, address in descriptor.tokens.items():
        if not is_valid_address_for_family(address, descriptor.family):
            raise RegistryConfigError(
                f"Malformed {symbol.value} contract address for {descriptor.name}: {address!r}"
            )


def _default_endpoints(key: ChainKey, alchemy_api_key: str) -> tuple[str, str]:
    if alchemy_api_key:
        slug = _ALCHEMY_SLUGS[key]
        return (
            f"https://{slug}.g.alchemy.com/v2/{alchemy_api_key}",
            f"wss://{slug}.g.alchemy.com/v2/{alchemy_api_key}",
        )
    return _PUBLIC_ENDPOINTS[key]


def _explorer_template(value: str) -> str:
    value = value.strip()
    if "{tx_hash}" in value:
        return value
    return f"{value.rstrip('/')}/tx/{{tx_hash}}"


def _apply_override(descriptor: ChainDescriptor, override: Mapping[str, Any]) -> ChainDescriptor:
    updates: Dict[str, Any] = {}
    if override.get("rpc_url"):
        updates["rpc_url"] = str(override["rpc_url"]).strip()
    if override.get("ws_url"):
        updates["ws_url"] = str(override["ws_url"]).strip()
    if override.get("explorer_url"):
        updates["explorer_tx_template"] = _explorer_template(str(override["explorer_url"]))
    if override.get("name"):
        updates["name"] = str(override["name"])
    if "tokens" in override:
        tokens = dict(descriptor.tokens)
        for raw_symbol, address in (override.get("tokens") or {}).items():
            symbol = parse_token_symbol(raw_symbol)
            if symbol is None:
                raise RegistryConfigError(f"Unknown token symbol in overrides: {raw_symbol!r}")
            if address:
                tokens[symbol] = str(address).strip()
            else:
                tokens.pop(symbol, None)
        updates["tokens"] = MappingProxyType(tokens)
    return replace(descriptor, **updates) if updates else descriptor


def build_registry(config: Optional[Settings] = None) -> ChainRegistry:
    """Build the registry from defaults plus settings overrides."""

    config = config or default_settings
    overrides = config.chain_overrides or {}

    unknown = [name for name in overrides if parse_chain_key(name) is None]
    if unknown:
        raise RegistryConfigError(f"Overrides reference unknown chains: {', '.join(sorted(unknown))}")
    overrides_by_key = {parse_chain_key(name): value for name, value in overrides.items()}

    descriptors: List[ChainDescriptor] = []
    for entry in _DEFAULT_CHAINS:
        key = entry["key"]
        rpc_url, ws_url = _default_endpoints(key, config.alchemy_api_key)
        descriptor = ChainDescriptor(
            rpc_url=rpc_url,
            ws_url=ws_url,
            **{**entry, "tokens": MappingProxyType(dict(entry["tokens"]))},
        )
        override = overrides_by_key.get(key)
        if override:
            descriptor = _apply_override(descriptor, override)
        descriptors.append(descriptor)

    default_key = parse_chain_key(config.default_chain)
    if default_key is None:
        raise RegistryConfigError(f"Unknown default chain: {config.default_chain!r}")
    return ChainRegistry(descriptors, default=default_key)


# Singleton instance
_chain_registry: Optional[ChainRegistry] = None


def get_chain_registry() -> ChainRegistry:
    """Get the process-wide ChainRegistry, building it on first use."""
    global _chain_registry
    if _chain_registry is None:
        _chain_registry = build_registry()
    return _chain_registry


def _lookup(chain: ChainRef) -> ChainDescriptor:
    registry = get_chain_registry()
    if default_settings.lenient_chain_lookups:
        return registry.resolve_or_default(chain)
    return registry.chain_by_id(chain)


def chain_by_id(chain: ChainRef) -> ChainDescriptor:
    return _lookup(chain)


def http_rpc_url(chain: ChainRef) -> str:
    return _lookup(chain).rpc_url


def streaming_rpc_url(chain: ChainRef) -> str:
    return _lookup(chain).ws_url


def explorer_tx_url(chain: ChainRef, tx_hash: str) -> str:
    return _lookup(chain).explorer_tx_url(tx_hash)


def token_address(chain: ChainRef, symbol: Union[TokenSymbol, str]) -> Optional[str]:
    return _lookup(chain).token_address(symbol)


__all__ = [
    "ChainDescriptor",
    "ChainRegistry",
    "build_registry",
    "get_chain_registry",
    "chain_by_id",
    "http_rpc_url",
    "streaming_rpc_url",
    "explorer_tx_url",
    "token_address",
]
