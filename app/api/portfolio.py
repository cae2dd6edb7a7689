from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from ..core.errors import WalletError
from ..services.address import is_valid_evm_address, is_valid_solana_address
from ..services.portfolio import aggregate
from ..types import PortfolioSnapshot
from .errors import to_http_exception

router = APIRouter()


def _parse_chains(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    chains = [item.strip() for item in value.split(",") if item.strip()]
    return chains or None


@router.get("/portfolio", response_model=PortfolioSnapshot)
async def get_portfolio(
    address: str = Query(..., description="Wallet address to aggregate"),
    chains: Optional[str] = Query(None, description="Comma separated chain keys, ids or CAIP-2 ids"),
) -> PortfolioSnapshot:
    address = address.strip()
    if not (is_valid_evm_address(address) or is_valid_solana_address(address)):
        raise HTTPException(
            status_code=400,
            detail={"code": "invalid_address", "message": "Address is not a valid EVM or Solana address"},
        )
    try:
        return await aggregate(address, _parse_chains(chains))
    except WalletError as exc:
        raise to_http_exception(exc) from exc
