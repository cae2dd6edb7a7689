"""
Error Classification

Errors raised by the wallet core. Each class carries a stable ``code`` so the
API layer can map it to a status without inspecting messages.

Terminal errors (surfaced to callers):
- InvalidAddress, UnsupportedToken, UnsupportedChainFamily, InvalidAmount,
  ChainNotFound, DecimalsQueryFailed (withdrawals only)

Absorbed errors (logged, degraded to zero or a fallback value):
- RpcFailure inside balance fetches, IdentityUnavailable, PriceUnavailable
"""

from typing import Any, Dict, Optional


class WalletError(Exception):
    """Base class for wallet core errors."""

    code: str = "wallet_error"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class InvalidAddress(WalletError):
    """Address is malformed for the target chain family."""

    code = "invalid_address"


class UnsupportedToken(WalletError):
    """Token has no configured contract on the chain."""

    code = "unsupported_token"


class UnsupportedChainFamily(WalletError):
    """Operation is not available for the chain's family (e.g. Solana withdrawals)."""

    code = "unsupported_chain_family"


class InvalidAmount(WalletError):
    """Amount string cannot be converted exactly into base units."""

    code = "invalid_amount"


class ChainNotFound(WalletError):
    """Chain identifier is not in the registry."""

    code = "chain_not_found"


class RegistryConfigError(WalletError):
    """Chain registry configuration is inconsistent."""

    code = "registry_config_error"


class RpcFailure(WalletError):
    """JSON-RPC call failed (network, node error, malformed result)."""

    code = "rpc_failure"


class DecimalsQueryFailed(RpcFailure):
    """``decimals()`` could not be read from a token contract."""

    code = "decimals_query_failed"


class IdentityUnavailable(WalletError):
    """Identity provider is not configured or unreachable."""

    code = "identity_unavailable"


class PriceUnavailable(WalletError):
    """Price feed did not return a usable price."""

    code = "price_unavailable"


__all__ = [
    "WalletError",
    "InvalidAddress",
    "UnsupportedToken",
    "UnsupportedChainFamily",
    "InvalidAmount",
    "ChainNotFound",
    "RegistryConfigError",
    "RpcFailure",
    "DecimalsQueryFailed",
    "IdentityUnavailable",
    "PriceUnavailable",
]
