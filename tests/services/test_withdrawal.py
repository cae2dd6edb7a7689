from unittest.mock import AsyncMock

import pytest

from app.config import Settings
from app.core.chain_registry import build_registry
from app.core.chain_types import ChainKey, TokenSymbol
from app.core.errors import (
    ChainNotFound,
    DecimalsQueryFailed,
    InvalidAddress,
    InvalidAmount,
    UnsupportedChainFamily,
    UnsupportedToken,
)
from app.services.withdrawal import WithdrawalBuilder
from app.types.wallet import WithdrawalRequest

DESTINATION = "0x1234567890abcdef1234567890abcdef12345678"
BASE_USDC = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"


@pytest.fixture
def builder(registry, rpc_factory):
    return WithdrawalBuilder(registry=registry, rpc_client_factory=rpc_factory({"base": dict(decimals=6)}))


@pytest.mark.asyncio
async def test_build_usdc_transfer(builder):
    call = await builder.build(DESTINATION, "10.50", "base", "USDC")

    assert call.to == BASE_USDC
    assert call.value == 0
    assert call.chain is ChainKey.BASE_SEPOLIA
    assert call.chain_id == 84532
    assert call.token is TokenSymbol.USDC
    assert call.amount_base_units == 10_500_000
    assert call.decimals == 6
    assert call.data == (
        "0xa9059cbb"
        + "000000000000000000000000" + DESTINATION[2:]
        + format(10_500_000, "064x")
    )
    assert call.as_transaction() == {"to": BASE_USDC, "data": call.data, "value": 0}


@pytest.mark.asyncio
async def test_decimals_are_read_from_the_contract(registry, rpc_factory):
    builder = WithdrawalBuilder(registry=registry, rpc_client_factory=rpc_factory({"base": dict(decimals=18)}))

    call = await builder.build(DESTINATION, "1.5", "base", "usdt")

    assert call.amount_base_units == 15 * 10**17
    assert call.decimals == 18


@pytest.mark.asyncio
async def test_missing_token_contract_is_unsupported(rpc_factory):
    registry = build_registry(Settings(chain_overrides={"base": {"tokens": {"USDT": None}}}))
    factory = rpc_factory({})
    builder = WithdrawalBuilder(registry=registry, rpc_client_factory=factory)

    with pytest.raises(UnsupportedToken):
        await builder.build(DESTINATION, "1", "base", "USDT")
    assert factory.opened == []


@pytest.mark.asyncio
async def test_unknown_token_is_unsupported(builder):
    with pytest.raises(UnsupportedToken):
        await builder.build(DESTINATION, "1", "base", "DAI")


@pytest.mark.asyncio
async def test_decimals_failure_raises(registry, rpc_factory):
    builder = WithdrawalBuilder(registry=registry, rpc_client_factory=rpc_factory({"base": dict(fail_decimals=True)}))

    with pytest.raises(DecimalsQueryFailed):
        await builder.build(DESTINATION, "1", "base", "USDC")


@pytest.mark.asyncio
async def test_solana_withdrawals_are_rejected(builder):
    with pytest.raises(UnsupportedChainFamily):
        await builder.build("So11111111111111111111111111111111111111112", "1", "solana-devnet", "USDC")


@pytest.mark.asyncio
@pytest.mark.parametrize("destination", ["0x1234", "", "So11111111111111111111111111111111111111112"])
async def test_invalid_destination(builder, destination):
    with pytest.raises(InvalidAddress):
        await builder.build(destination, "1", "base", "USDC")


@pytest.mark.asyncio
async def test_destination_with_bad_checksum_is_rejected(registry, rpc_factory):
    factory = rpc_factory({"base": dict(decimals=6)})
    builder = WithdrawalBuilder(registry=registry, rpc_client_factory=factory)

    # EIP-55 vector with the case of one letter flipped.
    with pytest.raises(InvalidAddress):
        await builder.build("0x52908400098527886e0F7030069857D2E4169EE7", "1", "base", "USDC")
    assert factory.opened == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "destination",
    [
        "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed",
        "0x5AAEB6053F3E94C9B9A09F33669435E7EF1BEAED",
    ],
)
async def test_destination_checksum_or_single_case_is_accepted(builder, destination):
    call = await builder.build(destination, "1", "base", "USDC")

    assert call.destination == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "0.000", "-1", "abc", "1e3", "0.0000001", ""])
async def test_invalid_amount(builder, amount):
    with pytest.raises(InvalidAmount):
        await builder.build(DESTINATION, amount, "base", "USDC")


@pytest.mark.asyncio
async def test_unknown_chain(builder):
    with pytest.raises(ChainNotFound):
        await builder.build(DESTINATION, "1", "avalanche", "USDC")


@pytest.mark.asyncio
async def test_submit_hands_call_to_signing_backend(builder):
    backend = AsyncMock()
    backend.send_transaction = AsyncMock(return_value="0xfeed")

    receipt = await builder.submit(DESTINATION, "2", "base", "USDC", sender=DESTINATION, backend=backend)

    tx, sender = backend.send_transaction.await_args.args
    assert tx == {"to": BASE_USDC, "data": receipt.call.data, "value": 0}
    assert sender == DESTINATION
    assert receipt.tx_hash == "0xfeed"
    assert receipt.explorer_url == "https://sepolia.basescan.org/tx/0xfeed"


@pytest.mark.asyncio
async def test_submit_withdrawal_from_request(monkeypatch, builder):
    from app.services import withdrawal

    monkeypatch.setattr(withdrawal, "_builder", builder)
    backend = AsyncMock()
    backend.send_transaction = AsyncMock(return_value="0xbeef")
    request = WithdrawalRequest(destination=DESTINATION, amount="3", chain="84532", token="usdc")

    receipt = await withdrawal.submit_withdrawal(request, DESTINATION, backend)

    assert receipt.call.amount_base_units == 3_000_000
    assert receipt.call.chain is ChainKey.BASE_SEPOLIA


@pytest.mark.asyncio
async def test_backend_failure_propagates(builder):
    backend = AsyncMock()
    backend.send_transaction = AsyncMock(side_effect=RuntimeError("user rejected"))

    with pytest.raises(RuntimeError):
        await builder.submit(DESTINATION, "2", "base", "USDC", sender=DESTINATION, backend=backend)
