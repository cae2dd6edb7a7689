"""
Session identity resolution.

Maps a user identifier to one EVM and one Solana deposit address, then fans
those out over every supported chain and asset. Wallets come from the
identity provider when it knows the user; anything else falls back to
deterministic pseudo-addresses so the session always resolves.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from ..providers.base import IdentityProvider
from ..providers.privy import PrivyProvider
from ..types.wallet import DepositAddressSet, IdentityUser, LinkedAccount
from .address_generator import fallback_seeds, generate_address

logger = logging.getLogger(__name__)

ANONYMOUS_KEY = "anonymous"

SOURCE_IDENTITY_PROVIDER = "identity_provider"
SOURCE_DETERMINISTIC_FALLBACK = "deterministic_fallback"


class SessionResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_key: str
    deposit_addresses: DepositAddressSet
    default_evm_address: str
    default_sol_address: str
    strategy: str
    source: str = Field(description="identity_provider or deterministic_fallback")


def _is_embedded_wallet(account: LinkedAccount) -> bool:
    return account.type == "wallet" and account.connector_type == "embedded"


def _is_solana_wallet(account: LinkedAccount) -> bool:
    return _is_embedded_wallet(account) and (
        (account.chain_id or "").startswith("solana")
        or account.chain_type == "solana"
        or account.wallet_client_type in ("phantom", "solana")
    )


def _is_evm_wallet(account: LinkedAccount) -> bool:
    if not _is_embedded_wallet(account):
        return False
    if (account.chain_id or "").startswith("eip155") or account.chain_type == "ethereum":
        return True
    # A missing client type means EVM unless the record is marked Solana.
    return account.wallet_client_type in (None, "", "metamask") and not _is_solana_wallet(account)


def _first_address(user: IdentityUser, predicate: Callable[[LinkedAccount], bool]) -> Optional[str]:
    for account in user.linked_accounts:
        if predicate(account) and account.address:
            return account.address
    return None


def select_wallets(user: IdentityUser) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(evm_address, solana_address)`` of the user's embedded wallets."""
    return _first_address(user, _is_evm_wallet), _first_address(user, _is_solana_wallet)


def build_deposit_addresses(
    evm_address: str,
    sol_address: str,
    chains: Iterable[str],
    tokens: Iterable[str],
) -> DepositAddressSet:
    """Assign the family's address to every (chain, token) pair."""
    token_list = [token.lower() for token in tokens]
    addresses: Dict[str, Dict[str, str]] = {}
    for chain in chains:
        address = sol_address if chain.startswith("solana:") else evm_address
        addresses[chain] = {token: address for token in token_list}
    return DepositAddressSet(addresses=addresses)


async def _lookup_user(
    provider: IdentityProvider,
    user_id: Optional[str],
    email: Optional[str],
) -> Optional[IdentityUser]:
    if user_id:
        return await provider.get_user_by_id(user_id)
    if email:
        return await provider.get_user_by_email(email)
    return None


async def resolve_deposit_addresses(
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    chains: Optional[Iterable[str]] = None,
    tokens: Optional[Iterable[str]] = None,
    provider: Optional[IdentityProvider] = None,
) -> SessionResolution:
    """
    Resolve deposit addresses for a session.

    Identifier precedence is ``user_id``, then ``email``, then ``"anonymous"``.
    Never raises: provider failures are logged and the deterministic
    fallback is used for any family without a linked wallet.
    """
    user_key = user_id or email or ANONYMOUS_KEY
    chain_list = list(chains) if chains is not None else settings.supported_chains_list
    token_list = list(tokens) if tokens is not None else settings.supported_assets_list
    provider = provider or PrivyProvider()

    evm_address: Optional[str] = None
    sol_address: Optional[str] = None
    try:
        user = await _lookup_user(provider, user_id, email)
        if user is None:
            logger.info(
                "identity user not found",
                extra={"event": "identity_fallback", "user_key": user_key, "reason": "not_found"},
            )
        else:
            evm_address, sol_address = select_wallets(user)
    except Exception as exc:
        logger.warning(
            "identity lookup failed, using deterministic addresses",
            extra={
                "event": "identity_fallback",
                "user_key": user_key,
                "reason": type(exc).__name__,
                "error": str(exc),
            },
        )

    source = SOURCE_IDENTITY_PROVIDER if (evm_address or sol_address) else SOURCE_DETERMINISTIC_FALLBACK
    evm_seed, sol_seed = fallback_seeds(user_key)
    evm_address = evm_address or generate_address(evm_seed)
    sol_address = sol_address or generate_address(sol_seed)

    return SessionResolution(
        user_key=user_key,
        deposit_addresses=build_deposit_addresses(evm_address, sol_address, chain_list, token_list),
        default_evm_address=evm_address,
        default_sol_address=sol_address,
        strategy=settings.deposit_address_strategy,
        source=source,
    )


def deposit_address_for_account(account: Optional[str] = None) -> str:
    """Best-effort deposit address for an arbitrary account string."""
    return generate_address(account or ANONYMOUS_KEY)


__all__ = [
    "SessionResolution",
    "select_wallets",
    "build_deposit_addresses",
    "resolve_deposit_addresses",
    "deposit_address_for_account",
]
