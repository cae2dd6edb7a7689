from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..types.wallet import IdentityUser


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class PriceProvider(Provider):
    """Provider for spot price data"""

    @abstractmethod
    async def get_simple_prices(self, coin_ids: List[str], vs_currency: str = "usd") -> Dict[str, Any]:
        """Return ``{coin_id: {vs_currency: price}}`` for the requested ids"""
        pass

    @abstractmethod
    async def get_usd_price(self, coin_id: str) -> Decimal:
        """Return the USD price of one coin; raise when unavailable"""
        pass


class IdentityProvider(Provider):
    """Provider for user identities and their linked wallets"""

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> Optional[IdentityUser]:
        """Return the user, or ``None`` when the id is unknown"""
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[IdentityUser]:
        """Return the user owning ``email``, or ``None`` when unknown"""
        pass
