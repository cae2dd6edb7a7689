"""
Native coin price oracle.

``price_of`` never raises: when the feed fails for any reason the configured
fallback price for the family is returned instead, so portfolio valuation
stays available with a possibly stale price.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional

from ..config import Settings, settings as default_settings
from ..core.chain_types import PriceFamily
from ..providers.base import PriceProvider
from ..providers.coingecko import CoingeckoProvider

logger = logging.getLogger(__name__)


class PriceOracle:
    """USD prices per native-coin family with fallback constants."""

    def __init__(self, provider: Optional[PriceProvider] = None, config: Optional[Settings] = None) -> None:
        self._provider = provider or CoingeckoProvider()
        self._config = config or default_settings

    def fallback_price(self, family: PriceFamily) -> Decimal:
        return self._config.price_fallback(family.value)

    async def price_of(self, family: PriceFamily) -> Decimal:
        fallback = self.fallback_price(family)
        try:
            if not await self._provider.ready():
                logger.info(
                    "price provider disabled, using fallback",
                    extra={"event": "price_fallback", "family": family.value, "reason": "disabled"},
                )
                return fallback
            return await self._provider.get_usd_price(family.coingecko_id)
        except Exception as exc:
            logger.warning(
                "price fetch failed, using fallback",
                extra={
                    "event": "price_fallback",
                    "family": family.value,
                    "fallback": str(fallback),
                    "error": str(exc),
                },
            )
            return fallback

    async def prices_for(self, families: Iterable[PriceFamily]) -> Dict[PriceFamily, Decimal]:
        """Price each distinct family once, concurrently."""
        unique = list(dict.fromkeys(families))
        if not unique:
            return {}
        prices = await asyncio.gather(*(self.price_of(family) for family in unique))
        return dict(zip(unique, prices))


# Singleton instance
_price_oracle: Optional[PriceOracle] = None


def get_price_oracle() -> PriceOracle:
    """Get the singleton PriceOracle instance."""
    global _price_oracle
    if _price_oracle is None:
        _price_oracle = PriceOracle()
    return _price_oracle


async def price_of(family: PriceFamily) -> Decimal:
    return await get_price_oracle().price_of(family)


__all__ = ["PriceOracle", "get_price_oracle", "price_of"]
