from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.errors import PriceUnavailable
from .base import PriceProvider


class CoingeckoProvider(PriceProvider):
    """Coingecko API provider for native coin prices"""

    name = "coingecko"
    timeout_s = 15

    def __init__(self, base_url: str = "https://api.coingecko.com/api/v3", timeout_s: Optional[int] = None):
        self.api_key = settings.coingecko_api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s or settings.request_timeout_seconds or self.timeout_s

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["X-CG-Demo-API-Key"] = self.api_key
        return headers

    async def ready(self) -> bool:
        return settings.enable_coingecko  # API key is optional for basic tier

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "Provider disabled"
            }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self.base_url}/ping",
                    headers=self._build_headers(),
                    timeout=self.timeout_s
                )
                response.raise_for_status()
                return {"status": "healthy", "latency_ms": int(response.elapsed.total_seconds() * 1000)}
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    async def get_simple_prices(self, coin_ids: List[str], vs_currency: str = "usd") -> Dict[str, Any]:
        """Fetch ``/simple/price`` for ``coin_ids``.

        Raises ``httpx.HTTPError`` for transport and status failures (429
        included) and ``PriceUnavailable`` for rate-limit or error bodies
        returned with a 200.
        """
        if not coin_ids:
            return {}

        params = {
            "ids": ",".join(coin_ids),
            "vs_currencies": vs_currency,
        }

        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self.base_url}/simple/price",
                headers=self._build_headers(),
                params=params,
                timeout=self.timeout_s
            )
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, dict):
            raise PriceUnavailable("Unexpected response from Coingecko simple/price")

        status = data.get("status")
        if isinstance(status, dict) and status.get("error_code"):
            raise PriceUnavailable(
                f"Coingecko error {status.get('error_code')}: {status.get('error_message', '')}".strip(),
                details={"error_code": status.get("error_code")},
            )

        return data

    async def get_usd_price(self, coin_id: str) -> Decimal:
        """Return the USD price for one coin or raise ``PriceUnavailable``."""
        data = await self.get_simple_prices([coin_id], vs_currency="usd")
        entry = data.get(coin_id)
        raw = entry.get("usd") if isinstance(entry, dict) else None
        if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
            raise PriceUnavailable(f"No USD price for {coin_id}", details={"coin_id": coin_id})
        try:
            price = Decimal(str(raw))
        except InvalidOperation as exc:
            raise PriceUnavailable(f"Malformed USD price for {coin_id}: {raw!r}") from exc
        if not price.is_finite() or price <= 0:
            raise PriceUnavailable(f"Non-positive USD price for {coin_id}: {raw!r}")
        return price
