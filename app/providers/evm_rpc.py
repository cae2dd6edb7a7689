"""JSON-RPC client for EVM chains.

One client wraps one ``httpx.AsyncClient`` and is meant to be used as an
async context manager scoped to a single fetch, so the connection is closed
on every exit path.
"""

from __future__ import annotations

import itertools
from typing import Any, List, Optional

import httpx

from ..config import settings
from ..core.erc20 import decode_uint256, encode_balance_of, encode_decimals
from ..core.errors import RpcFailure


class EvmRpcClient:
    """Thin async JSON-RPC 2.0 client."""

    name = "evm-rpc"

    def __init__(self, rpc_url: str, *, timeout_s: Optional[float] = None) -> None:
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s or settings.rpc_timeout_seconds
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "EvmRpcClient":
        self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.aclose()
        return False

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def call(self, method: str, params: List[Any]) -> Any:
        if self._client is None:
            raise RuntimeError("EvmRpcClient must be used as an async context manager")

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        try:
            response = await self._client.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise RpcFailure(f"{method} failed: {exc}", details={"method": method}) from exc
        except ValueError as exc:
            raise RpcFailure(f"{method} returned invalid JSON", details={"method": method}) from exc

        if not isinstance(data, dict):
            raise RpcFailure(f"{method} returned an unexpected payload", details={"method": method})
        if data.get("error"):
            raise RpcFailure(f"{method} error: {data['error']}", details={"method": method, "error": data["error"]})
        if "result" not in data:
            raise RpcFailure(f"{method} returned no result", details={"method": method})
        return data["result"]

    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        result = await self.call("eth_getBalance", [address, "latest"])
        try:
            return int(result, 16)
        except (TypeError, ValueError) as exc:
            raise RpcFailure(f"Malformed eth_getBalance result: {result!r}") from exc

    async def eth_call(self, to: str, data: str) -> str:
        return await self.call("eth_call", [{"to": to, "data": data}, "latest"])

    async def _call_uint(self, to: str, data: str, label: str) -> int:
        result = await self.eth_call(to, data)
        try:
            return decode_uint256(result)
        except (TypeError, ValueError) as exc:
            raise RpcFailure(f"{label} returned malformed data: {result!r}", details={"contract": to}) from exc

    async def erc20_balance_of(self, token: str, owner: str) -> int:
        return await self._call_uint(token, encode_balance_of(owner), "balanceOf")

    async def erc20_decimals(self, token: str) -> int:
        decimals = await self._call_uint(token, encode_decimals(), "decimals")
        if decimals > 255:
            raise RpcFailure(f"decimals() out of uint8 range: {decimals}", details={"contract": token})
        return decimals


__all__ = ["EvmRpcClient"]
