"""
Multi-chain portfolio aggregation.

Fans ``fetch_chain_balance`` out over the requested chains concurrently,
waits for every chain to settle, then values the result:

- cash      = sum of stablecoin balances (assumed ≈ $1)
- portfolio = cash + sum of native balance × native price

A chain that fails entirely contributes zeros. Native prices are fetched
once per price family, not once per chain.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, localcontext
from time import perf_counter
from typing import Dict, Iterable, List, Optional

from ..core.chain_registry import ChainDescriptor, ChainRegistry, get_chain_registry
from ..core.chain_types import ChainFamily, ChainKey, ChainRef, PriceFamily, TokenSymbol
from ..providers.evm_rpc import EvmRpcClient
from ..types.wallet import ChainBalance, LegacyTokenView, PortfolioSnapshot
from .balances import RpcClientFactory, fetch_chain_balance
from .prices import PriceOracle, get_price_oracle

logger = logging.getLogger(__name__)

# Sums of uint256-scale amounts need more than the default 28 digits.
_SUM_PRECISION = 100


def _dedupe(registry: ChainRegistry, chains: Optional[Iterable[ChainRef]]) -> List[ChainDescriptor]:
    if chains is None:
        return registry.chains()
    seen: Dict[ChainKey, ChainDescriptor] = {}
    for chain in chains:
        descriptor = registry.chain_by_id(chain)
        seen.setdefault(descriptor.key, descriptor)
    return list(seen.values())


def _legacy_view(balances: Dict[ChainKey, ChainBalance], registry: ChainRegistry) -> LegacyTokenView:
    usdc = sum((b.token(TokenSymbol.USDC) for b in balances.values()), Decimal("0"))
    usdt = sum((b.token(TokenSymbol.USDT) for b in balances.values()), Decimal("0"))
    eth = Decimal("0")
    sol = Decimal("0")
    for key, balance in balances.items():
        if registry.chain_by_id(key).family is ChainFamily.SOLANA:
            sol += balance.native
        else:
            eth += balance.native
    return LegacyTokenView(usdc=usdc, usdt=usdt, eth=eth, sol=sol)


class PortfolioAggregator:
    """Builds ``PortfolioSnapshot`` values for an address."""

    def __init__(
        self,
        registry: Optional[ChainRegistry] = None,
        price_oracle: Optional[PriceOracle] = None,
        rpc_client_factory: RpcClientFactory = EvmRpcClient,
    ) -> None:
        self._registry = registry
        self._price_oracle = price_oracle
        self._rpc_client_factory = rpc_client_factory

    @property
    def registry(self) -> ChainRegistry:
        return self._registry or get_chain_registry()

    @property
    def price_oracle(self) -> PriceOracle:
        return self._price_oracle or get_price_oracle()

    async def _fetch_one(self, address: str, descriptor: ChainDescriptor) -> ChainBalance:
        try:
            return await fetch_chain_balance(
                address,
                descriptor.key,
                registry=self.registry,
                rpc_client_factory=self._rpc_client_factory,
            )
        except Exception as exc:
            logger.warning(
                "chain balance fetch failed",
                extra={
                    "event": "chain_balance_failed",
                    "chain": descriptor.key.value,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return ChainBalance.zero(descriptor.key, list(descriptor.tokens.keys()), errors=["chain"])

    async def aggregate(self, address: str, chains: Optional[Iterable[ChainRef]] = None) -> PortfolioSnapshot:
        """
        Aggregate balances for ``address`` across ``chains``.

        Args:
            address: Wallet address; chains whose family rejects it report zeros
            chains: Chain references (defaults to every registry chain)

        Returns:
            A complete PortfolioSnapshot, built only after every chain settled

        Raises:
            ChainNotFound: a requested chain is not in the registry
        """
        registry = self.registry
        descriptors = _dedupe(registry, chains)
        started = perf_counter()

        results = await asyncio.gather(
            *(self._fetch_one(address, descriptor) for descriptor in descriptors),
            return_exceptions=True,
        )

        balances: Dict[ChainKey, ChainBalance] = {}
        for descriptor, result in zip(descriptors, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "chain balance task failed",
                    extra={"event": "chain_balance_failed", "chain": descriptor.key.value, "error": str(result)},
                )
                result = ChainBalance.zero(descriptor.key, list(descriptor.tokens.keys()), errors=["chain"])
            balances[descriptor.key] = result

        families = [
            registry.chain_by_id(key).price_family
            for key, balance in balances.items()
            if balance.native > 0
        ]
        prices: Dict[PriceFamily, Decimal] = await self.price_oracle.prices_for(families)

        with localcontext() as ctx:
            ctx.prec = _SUM_PRECISION
            cash = Decimal("0")
            native_value = Decimal("0")
            for key, balance in balances.items():
                descriptor = registry.chain_by_id(key)
                cash += sum(
                    (amount for symbol, amount in balance.tokens.items() if symbol.is_stablecoin),
                    Decimal("0"),
                )
                if balance.native > 0:
                    native_value += balance.native * prices[descriptor.price_family]
            legacy = _legacy_view(balances, registry)
            portfolio = cash + native_value

        logger.info(
            "portfolio aggregated",
            extra={
                "event": "portfolio_aggregated",
                "chains": [key.value for key in balances],
                "failed_chains": [key.value for key, b in balances.items() if "chain" in b.errors],
                "duration_ms": round((perf_counter() - started) * 1000, 2),
            },
        )

        return PortfolioSnapshot(
            address=address,
            portfolio=portfolio,
            cash=cash,
            chains=balances,
            tokens=legacy,
            prices=prices,
        )


# Singleton instance
_aggregator: Optional[PortfolioAggregator] = None


def get_portfolio_aggregator() -> PortfolioAggregator:
    """Get the singleton PortfolioAggregator instance."""
    global _aggregator
    if _aggregator is None:
        _aggregator = PortfolioAggregator()
    return _aggregator


async def aggregate(address: str, chains: Optional[Iterable[ChainRef]] = None) -> PortfolioSnapshot:
    return await get_portfolio_aggregator().aggregate(address, chains)


__all__ = ["PortfolioAggregator", "get_portfolio_aggregator", "aggregate"]
