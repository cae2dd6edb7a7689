from decimal import Decimal

import httpx
import pytest

from app.core.errors import PriceUnavailable
from app.providers import coingecko
from app.providers.coingecko import CoingeckoProvider

_RealAsyncClient = httpx.AsyncClient


def _patch_transport(monkeypatch, handler):
    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return _RealAsyncClient(*args, **kwargs)

    monkeypatch.setattr(coingecko.httpx, "AsyncClient", factory)


@pytest.mark.asyncio
async def test_get_usd_price(monkeypatch):
    seen = {}

    def handler(request):
        seen["url"] = request.url
        seen["headers"] = request.headers
        return httpx.Response(200, json={"ethereum": {"usd": 3512.44}})

    _patch_transport(monkeypatch, handler)
    provider = CoingeckoProvider()
    provider.api_key = "demo"

    price = await provider.get_usd_price("ethereum")

    assert price == Decimal("3512.44")
    assert seen["url"].path.endswith("/simple/price")
    assert seen["url"].params["ids"] == "ethereum"
    assert seen["url"].params["vs_currencies"] == "usd"
    assert seen["headers"]["X-CG-Demo-API-Key"] == "demo"


@pytest.mark.asyncio
async def test_rate_limited_response_raises(monkeypatch):
    _patch_transport(monkeypatch, lambda request: httpx.Response(429, json={"status": {"error_code": 429}}))

    with pytest.raises(httpx.HTTPStatusError):
        await CoingeckoProvider().get_usd_price("ethereum")


@pytest.mark.asyncio
async def test_error_body_with_200_raises(monkeypatch):
    body = {"status": {"error_code": 429, "error_message": "You've exceeded the Rate Limit"}}
    _patch_transport(monkeypatch, lambda request: httpx.Response(200, json=body))

    with pytest.raises(PriceUnavailable):
        await CoingeckoProvider().get_usd_price("ethereum")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {},
        {"ethereum": {}},
        {"ethereum": {"usd": None}},
        {"ethereum": {"usd": "abc"}},
        {"ethereum": {"usd": 0}},
        {"ethereum": {"usd": -5}},
        {"ethereum": {"usd": True}},
    ],
)
async def test_unusable_price_raises(monkeypatch, body):
    _patch_transport(monkeypatch, lambda request: httpx.Response(200, json=body))

    with pytest.raises(PriceUnavailable):
        await CoingeckoProvider().get_usd_price("ethereum")


@pytest.mark.asyncio
async def test_get_simple_prices_empty_ids_skips_request(monkeypatch):
    def handler(request):
        raise AssertionError("no request expected")

    _patch_transport(monkeypatch, handler)

    assert await CoingeckoProvider().get_simple_prices([]) == {}
