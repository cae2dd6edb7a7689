from decimal import Decimal

import pytest

from app.core.chain_types import ChainKey, TokenSymbol
from app.core.errors import ChainNotFound, InvalidAddress
from app.services.balances import fetch_chain_balance

OWNER = "0x1234567890abcdef1234567890abcdef12345678"
SOL_OWNER = "So11111111111111111111111111111111111111112"
BASE_USDC = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
BASE_USDT = "0x2d82C4b9ff582d02CC89675f2D086Cb7953A555a"


@pytest.mark.asyncio
async def test_fetch_chain_balance_reads_native_and_tokens(registry, rpc_factory):
    factory = rpc_factory({"base": dict(native=2 * 10**18, tokens={BASE_USDC: 1_500_000, BASE_USDT: 250_000})})

    balance = await fetch_chain_balance(OWNER, "base", registry=registry, rpc_client_factory=factory)

    assert balance.chain is ChainKey.BASE_SEPOLIA
    assert balance.native == Decimal("2")
    assert balance.tokens == {TokenSymbol.USDC: Decimal("1.5"), TokenSymbol.USDT: Decimal("0.25")}
    assert balance.errors == []
    assert [client.rpc_url for client in factory.opened] == [registry.http_rpc_url("base")]


@pytest.mark.asyncio
async def test_token_failure_is_contained(registry, rpc_factory):
    factory = rpc_factory({"base": dict(native=10**18, tokens={BASE_USDC: 3_000_000}, fail_tokens=[BASE_USDT])})

    balance = await fetch_chain_balance(OWNER, "base", registry=registry, rpc_client_factory=factory)

    assert balance.token(TokenSymbol.USDC) == Decimal("3")
    assert balance.token(TokenSymbol.USDT) == Decimal("0")
    assert balance.native == Decimal("1")
    assert balance.errors == ["USDT"]


@pytest.mark.asyncio
async def test_native_failure_does_not_abort_tokens(registry, rpc_factory):
    factory = rpc_factory({"base": dict(fail_native=True, tokens={BASE_USDC: 1_000_000})})

    balance = await fetch_chain_balance(OWNER, "base", registry=registry, rpc_client_factory=factory)

    assert balance.native == Decimal("0")
    assert balance.token(TokenSymbol.USDC) == Decimal("1")
    assert balance.errors == ["ETH"]


@pytest.mark.asyncio
async def test_decimals_failure_zeroes_every_token(registry, rpc_factory):
    factory = rpc_factory({"base": dict(native=10**18, tokens={BASE_USDC: 1_000_000}, fail_decimals=True)})

    balance = await fetch_chain_balance(OWNER, "base", registry=registry, rpc_client_factory=factory)

    assert balance.tokens == {TokenSymbol.USDC: Decimal("0"), TokenSymbol.USDT: Decimal("0")}
    assert balance.errors == ["USDC", "USDT"]
    assert balance.native == Decimal("1")


@pytest.mark.asyncio
async def test_solana_chain_reports_zeros_without_rpc(registry, rpc_factory):
    factory = rpc_factory({})

    balance = await fetch_chain_balance(SOL_OWNER, "solana-devnet", registry=registry, rpc_client_factory=factory)

    assert balance.native == Decimal("0")
    assert set(balance.tokens) == {TokenSymbol.USDC, TokenSymbol.USDT}
    assert all(amount == 0 for amount in balance.tokens.values())
    assert factory.opened == []


@pytest.mark.asyncio
@pytest.mark.parametrize("address, chain", [("0x1234", "base"), (OWNER, "solana-devnet"), (SOL_OWNER, "base")])
async def test_invalid_address_raises_before_any_io(registry, rpc_factory, address, chain):
    factory = rpc_factory({})

    with pytest.raises(InvalidAddress):
        await fetch_chain_balance(address, chain, registry=registry, rpc_client_factory=factory)
    assert factory.opened == []


@pytest.mark.asyncio
async def test_unknown_chain_raises(registry, rpc_factory):
    with pytest.raises(ChainNotFound):
        await fetch_chain_balance(OWNER, "avalanche", registry=registry, rpc_client_factory=rpc_factory({}))


@pytest.mark.asyncio
async def test_client_closed_on_every_path(registry, rpc_factory):
    factory = rpc_factory({"base": dict(fail_native=True, fail_decimals=True)})

    await fetch_chain_balance(OWNER, "base", registry=registry, rpc_client_factory=factory)

    assert factory.opened and all(client.closed for client in factory.opened)


@pytest.mark.asyncio
async def test_client_closed_when_unexpected_error_escapes(registry, rpc_factory):
    factory = rpc_factory({"base": dict(fail_native=KeyError("unexpected"))})

    with pytest.raises(KeyError):
        await fetch_chain_balance(OWNER, "base", registry=registry, rpc_client_factory=factory)
    assert factory.opened[0].closed is True
