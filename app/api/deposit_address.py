from typing import Optional

from fastapi import APIRouter, Query

from ..services.identity import deposit_address_for_account
from ..types import DepositAddressResponse

router = APIRouter()


@router.get("/deposit-address", response_model=DepositAddressResponse)
async def get_deposit_address(
    account: Optional[str] = Query(None, description="Account identifier to derive the address from"),
) -> DepositAddressResponse:
    return DepositAddressResponse(address=deposit_address_for_account(account))
