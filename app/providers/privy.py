from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.errors import IdentityUnavailable
from ..types.wallet import IdentityUser
from .base import IdentityProvider


class PrivyProvider(IdentityProvider):
    """Privy server API provider for user records and linked wallets"""

    name = "privy"
    timeout_s = 15

    def __init__(
        self,
        app_id: Optional[str] = None,
        app_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[int] = None,
    ):
        self.app_id = app_id if app_id is not None else settings.privy_app_id
        self.app_secret = app_secret if app_secret is not None else settings.privy_app_secret
        self.base_url = (base_url or settings.privy_base_url).rstrip("/")
        self.timeout_s = timeout_s or settings.request_timeout_seconds or self.timeout_s

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "privy-app-id": self.app_id,
        }

    async def ready(self) -> bool:
        return bool(self.app_id and self.app_secret)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "Missing app id or secret"
            }
        return {"status": "configured"}

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        if not await self.ready():
            raise IdentityUnavailable("Privy credentials are not configured")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=self._build_headers(),
                    auth=(self.app_id, self.app_secret),
                    json=json,
                    timeout=self.timeout_s,
                )
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            raise IdentityUnavailable(
                f"Privy returned HTTP {exc.response.status_code}",
                details={"status_code": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            raise IdentityUnavailable(f"Privy request failed: {exc}") from exc
        except ValueError as exc:
            raise IdentityUnavailable("Privy returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise IdentityUnavailable("Unexpected response from Privy")
        return data

    def _parse_user(self, data: Optional[Dict[str, Any]]) -> Optional[IdentityUser]:
        if data is None:
            return None
        try:
            return IdentityUser.model_validate(data)
        except ValueError as exc:
            raise IdentityUnavailable("Malformed user record from Privy") from exc

    async def get_user_by_id(self, user_id: str) -> Optional[IdentityUser]:
        """Fetch ``/users/{id}``; ``None`` when Privy has no such user."""
        data = await self._request("GET", f"/users/{user_id}")
        return self._parse_user(data)

    async def get_user_by_email(self, email: str) -> Optional[IdentityUser]:
        """Look up the user owning ``email``; ``None`` when unknown."""
        data = await self._request("POST", "/users/email/address", json={"address": email})
        return self._parse_user(data)
