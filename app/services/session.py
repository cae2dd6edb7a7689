"""
Wallet session context.

A ``WalletSession`` owns everything the client-side stores used to hold for a
signed-in user: the profile, the resolved deposit addresses and the latest
portfolio snapshot. Snapshots are replaced wholesale on ``refresh``; readers
holding the previous snapshot keep a consistent view.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.chain_types import ChainRef
from ..providers.base import IdentityProvider
from ..types.wallet import DepositAddressSet, PortfolioSnapshot
from .identity import SessionResolution, resolve_deposit_addresses
from .portfolio import PortfolioAggregator, get_portfolio_aggregator

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Anonymous Trader"


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    address: str
    username: str
    display_name: str = DEFAULT_DISPLAY_NAME
    virtual_address: str
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_address(cls, address: str) -> "UserProfile":
        return cls(address=address, username=f"user_{address[:6]}", virtual_address=address)


class WalletSession:
    """Per-user session: profile, deposit addresses and current snapshot."""

    def __init__(
        self,
        resolution: SessionResolution,
        aggregator: Optional[PortfolioAggregator] = None,
    ) -> None:
        self._resolution = resolution
        self._aggregator = aggregator
        self._profile = UserProfile.for_address(resolution.default_evm_address)
        self._snapshot: Optional[PortfolioSnapshot] = None

    @classmethod
    async def open(
        cls,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        *,
        provider: Optional[IdentityProvider] = None,
        aggregator: Optional[PortfolioAggregator] = None,
    ) -> "WalletSession":
        resolution = await resolve_deposit_addresses(user_id=user_id, email=email, provider=provider)
        logger.info(
            "wallet session opened",
            extra={"event": "session_opened", "user_key": resolution.user_key, "source": resolution.source},
        )
        return cls(resolution, aggregator=aggregator)

    @property
    def resolution(self) -> SessionResolution:
        return self._resolution

    @property
    def profile(self) -> UserProfile:
        return self._profile

    @property
    def deposit_addresses(self) -> DepositAddressSet:
        return self._resolution.deposit_addresses

    @property
    def address(self) -> str:
        return self._resolution.default_evm_address

    @property
    def snapshot(self) -> Optional[PortfolioSnapshot]:
        return self._snapshot

    async def refresh(self, chains: Optional[Iterable[ChainRef]] = None) -> PortfolioSnapshot:
        """Aggregate a fresh snapshot and make it the current one."""
        aggregator = self._aggregator or get_portfolio_aggregator()
        snapshot = await aggregator.aggregate(self.address, chains)
        self._snapshot = snapshot
        return snapshot


__all__ = ["UserProfile", "WalletSession"]
