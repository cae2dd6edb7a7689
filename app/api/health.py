from fastapi import APIRouter
from typing import Dict, Any
from ..config import settings
from ..core.chain_registry import get_chain_registry
from ..core.errors import RegistryConfigError
from ..providers.coingecko import CoingeckoProvider
from ..providers.privy import PrivyProvider

router = APIRouter()


def _rpc_status() -> Dict[str, Any]:
    try:
        registry = get_chain_registry()
    except RegistryConfigError as exc:
        return {"status": "error", "reason": exc.message}
    return {
        "status": "healthy",
        "endpoints": "alchemy" if settings.has_alchemy_key else "public",
        "chains": [descriptor.key.value for descriptor in registry.chains()],
    }


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    coingecko = CoingeckoProvider()
    privy = PrivyProvider()

    provider_status = {
        "rpc": _rpc_status(),
        "coingecko": await coingecko.health_check(),
        "privy": await privy.health_check(),
    }

    # Privy and Coingecko have fallbacks; only a broken registry is fatal.
    degraded = any(
        status["status"] == "error"
        for status in provider_status.values()
    )

    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] in ("healthy", "configured")
    )

    return {
        "status": "degraded" if degraded else "healthy",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status)
    }
