from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.errors import IdentityUnavailable
from app.services.address_generator import generate_address
from app.services.identity import (
    build_deposit_addresses,
    deposit_address_for_account,
    resolve_deposit_addresses,
    select_wallets,
)
from app.types.wallet import IdentityUser

CHAINS = ["eip155:11155111", "eip155:84532", "solana:101"]
TOKENS = ["usdc", "usdt"]

EVM_WALLET = {
    "type": "wallet",
    "connector_type": "embedded",
    "chain_type": "ethereum",
    "chain_id": "eip155:1",
    "wallet_client_type": "privy",
    "address": "0x1111111111111111111111111111111111111111",
}
SOL_WALLET = {
    "type": "wallet",
    "connector_type": "embedded",
    "chain_type": "solana",
    "wallet_client_type": "privy",
    "address": "So11111111111111111111111111111111111111112",
}


def _provider(user=None, error=None):
    provider = MagicMock()
    provider.get_user_by_id = AsyncMock(return_value=user, side_effect=error)
    provider.get_user_by_email = AsyncMock(return_value=user, side_effect=error)
    return provider


def _user(*accounts):
    return IdentityUser.model_validate({"id": "did:privy:abc123", "linked_accounts": list(accounts)})


@pytest.mark.asyncio
async def test_linked_wallets_are_used():
    provider = _provider(_user({"type": "email", "address": "a@b.c"}, EVM_WALLET, SOL_WALLET))

    result = await resolve_deposit_addresses(user_id="did:privy:abc123", chains=CHAINS, tokens=TOKENS,
                                             provider=provider)

    assert result.source == "identity_provider"
    assert result.default_evm_address == EVM_WALLET["address"]
    assert result.default_sol_address == SOL_WALLET["address"]
    assert result.deposit_addresses.addresses == {
        "eip155:11155111": {"usdc": EVM_WALLET["address"], "usdt": EVM_WALLET["address"]},
        "eip155:84532": {"usdc": EVM_WALLET["address"], "usdt": EVM_WALLET["address"]},
        "solana:101": {"usdc": SOL_WALLET["address"], "usdt": SOL_WALLET["address"]},
    }
    provider.get_user_by_id.assert_awaited_once_with("did:privy:abc123")
    provider.get_user_by_email.assert_not_awaited()


@pytest.mark.asyncio
async def test_user_id_takes_precedence_over_email():
    provider = _provider(_user(EVM_WALLET))

    await resolve_deposit_addresses(user_id="did:privy:abc123", email="alice@example.com", provider=provider)

    provider.get_user_by_id.assert_awaited_once()
    provider.get_user_by_email.assert_not_awaited()


@pytest.mark.asyncio
async def test_email_lookup_when_no_user_id():
    provider = _provider(_user(EVM_WALLET))

    result = await resolve_deposit_addresses(email="alice@example.com", provider=provider)

    provider.get_user_by_email.assert_awaited_once_with("alice@example.com")
    assert result.user_key == "alice@example.com"


@pytest.mark.asyncio
async def test_anonymous_session_uses_fallback_addresses():
    provider = _provider()

    result = await resolve_deposit_addresses(chains=CHAINS, tokens=TOKENS, provider=provider)

    assert result.source == "deterministic_fallback"
    assert result.default_evm_address == "0x07ad6c859ac451e8fae11f261bb24c958378c56b"
    assert result.default_sol_address == "0x7b041d6a737cdd66d3eba40e21c141e95bf11043"
    provider.get_user_by_id.assert_not_awaited()
    provider.get_user_by_email.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "provider",
    [
        _provider(user=None),
        _provider(error=IdentityUnavailable("Privy credentials are not configured")),
        _provider(error=RuntimeError("network down")),
        _provider(_user({"type": "email", "address": "a@b.c"})),
    ],
)
async def test_fallback_is_deterministic_for_the_user_key(provider):
    result = await resolve_deposit_addresses(user_id="did:privy:abc123", chains=CHAINS, tokens=TOKENS,
                                             provider=provider)

    assert result.source == "deterministic_fallback"
    assert result.default_evm_address == generate_address("did:privy:abc123:evm")
    assert result.default_sol_address == generate_address("did:privy:abc123:sol")
    assert result.deposit_addresses.address_for("solana:101", "USDC") == result.default_sol_address


@pytest.mark.asyncio
async def test_missing_family_uses_its_fallback_seed():
    provider = _provider(_user(EVM_WALLET))

    result = await resolve_deposit_addresses(user_id="did:privy:abc123", chains=CHAINS, tokens=TOKENS,
                                             provider=provider)

    assert result.source == "identity_provider"
    assert result.default_evm_address == EVM_WALLET["address"]
    assert result.default_sol_address == generate_address("did:privy:abc123:sol")


@pytest.mark.asyncio
async def test_defaults_come_from_settings(monkeypatch):
    from app.services import identity

    monkeypatch.setattr(identity.settings, "supported_chains", "eip155:84532,solana:101")
    monkeypatch.setattr(identity.settings, "supported_assets", "USDC")
    monkeypatch.setattr(identity.settings, "deposit_address_strategy", "per_user_static")

    result = await resolve_deposit_addresses(provider=_provider())

    assert set(result.deposit_addresses.addresses) == {"eip155:84532", "solana:101"}
    assert result.deposit_addresses.addresses["eip155:84532"] == {"usdc": result.default_evm_address}
    assert result.strategy == "per_user_static"


def test_select_wallets_requires_embedded_connector():
    external = dict(EVM_WALLET, connector_type="injected")
    assert select_wallets(_user(external)) == (None, None)


def test_select_wallets_by_client_type():
    metamask = {"type": "wallet", "connector_type": "embedded", "wallet_client_type": "metamask",
                "address": "0x2222222222222222222222222222222222222222"}
    phantom = {"type": "wallet", "connector_type": "embedded", "wallet_client_type": "phantom",
               "address": "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"}

    assert select_wallets(_user(phantom, metamask)) == (metamask["address"], phantom["address"])


def test_select_wallets_solana_chain_id_is_not_evm():
    sol_by_chain_id = {"type": "wallet", "connector_type": "embedded", "chain_id": "solana:101",
                       "address": "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"}

    assert select_wallets(_user(sol_by_chain_id)) == (None, sol_by_chain_id["address"])


def test_build_deposit_addresses_lowercases_tokens():
    result = build_deposit_addresses("0xevm", "sol", ["eip155:97", "solana:101"], ["USDC"])
    assert result.addresses == {"eip155:97": {"usdc": "0xevm"}, "solana:101": {"usdc": "sol"}}


def test_deposit_address_for_account():
    assert deposit_address_for_account(None) == "0x21a9d105cbf8b5db978980282c1e60250a40e567"
    assert deposit_address_for_account("") == deposit_address_for_account("anonymous")
    assert deposit_address_for_account("alice") == generate_address("alice")
