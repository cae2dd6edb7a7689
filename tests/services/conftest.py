from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.config import Settings
from app.core.chain_registry import build_registry
from app.core.errors import RpcFailure
from app.services.prices import PriceOracle

_RPC_URLS = {
    "ethereum": "http://ethereum.rpc.test",
    "base": "http://base.rpc.test",
    "polygon-amoy": "http://amoy.rpc.test",
    "bnb": "http://bnb.rpc.test",
}


@pytest.fixture
def registry():
    return build_registry(
        Settings(
            alchemy_api_key="",
            chain_overrides={key: {"rpc_url": url} for key, url in _RPC_URLS.items()},
        )
    )


class _FakeChain:
    """Scripted node state for one chain."""

    def __init__(self, native=0, tokens=None, decimals=6, fail_native=None, fail_tokens=(), fail_decimals=False,
                 fail_connect=False, gate=None):
        self.native = native
        self.tokens = {address.lower(): raw for address, raw in (tokens or {}).items()}
        self.decimals = decimals
        self.fail_native = RpcFailure("eth_getBalance failed") if fail_native is True else fail_native
        self.fail_tokens = {address.lower() for address in fail_tokens}
        self.fail_decimals = fail_decimals
        self.fail_connect = fail_connect
        # asyncio.Event that get_balance waits on before answering.
        self.gate = gate


@pytest.fixture
def rpc_factory():
    """Build a fake ``EvmRpcClient`` class from ``{chain_key: FakeChain kwargs}``.

    The returned class records every instance in ``opened``.
    """

    def build(chains):
        by_url = {_RPC_URLS[key]: _FakeChain(**kwargs) for key, kwargs in chains.items()}
        opened = []

        class FakeRpcClient:
            def __init__(self, rpc_url, **_):
                self.rpc_url = rpc_url
                self.closed = False
                self.chain = by_url.get(rpc_url, _FakeChain())
                opened.append(self)

            async def __aenter__(self):
                if self.chain.fail_connect:
                    self.closed = True
                    raise RuntimeError(f"cannot reach {self.rpc_url}")
                return self

            async def __aexit__(self, exc_type, exc, tb):
                self.closed = True
                return False

            async def get_balance(self, address):
                if self.chain.gate is not None:
                    await self.chain.gate.wait()
                if self.chain.fail_native is not None:
                    raise self.chain.fail_native
                return self.chain.native

            async def erc20_balance_of(self, token, owner):
                if token.lower() in self.chain.fail_tokens:
                    raise RpcFailure("balanceOf failed")
                return self.chain.tokens.get(token.lower(), 0)

            async def erc20_decimals(self, token):
                if self.chain.fail_decimals:
                    raise RpcFailure("decimals failed")
                return self.chain.decimals

        FakeRpcClient.opened = opened
        return FakeRpcClient

    return build


@pytest.fixture
def price_provider():
    provider = MagicMock()
    provider.ready = AsyncMock(return_value=True)
    provider.get_usd_price = AsyncMock(return_value=Decimal("2000"))
    return provider


@pytest.fixture
def price_oracle(price_provider):
    return PriceOracle(provider=price_provider, config=Settings())
