from typing import Dict, Type

from fastapi import HTTPException

from ..core.errors import (
    ChainNotFound,
    DecimalsQueryFailed,
    IdentityUnavailable,
    InvalidAddress,
    InvalidAmount,
    PriceUnavailable,
    RpcFailure,
    UnsupportedChainFamily,
    UnsupportedToken,
    WalletError,
)

# Most specific class first; DecimalsQueryFailed is an RpcFailure.
_STATUS_BY_ERROR: Dict[Type[WalletError], int] = {
    InvalidAddress: 400,
    UnsupportedToken: 400,
    UnsupportedChainFamily: 400,
    InvalidAmount: 400,
    ChainNotFound: 404,
    DecimalsQueryFailed: 502,
    RpcFailure: 502,
    IdentityUnavailable: 503,
    PriceUnavailable: 503,
}


def status_for(exc: WalletError) -> int:
    for error_type, status in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 500


def to_http_exception(exc: WalletError) -> HTTPException:
    return HTTPException(status_code=status_for(exc), detail=exc.to_dict())
