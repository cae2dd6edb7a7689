from typing import Optional

from fastapi import APIRouter, Body

from ..services.identity import resolve_deposit_addresses
from ..types import SessionRequest, SessionResponse

router = APIRouter()


@router.post("/session", response_model=SessionResponse)
async def create_session(body: Optional[SessionRequest] = Body(default=None)) -> SessionResponse:
    """Resolve deposit addresses for the signed-in user (or an anonymous session)."""
    body = body or SessionRequest()
    resolution = await resolve_deposit_addresses(user_id=body.user_id, email=body.email)
    return SessionResponse(
        deposit_addresses=resolution.deposit_addresses.addresses,
        default_evm_address=resolution.default_evm_address,
        default_sol_address=resolution.default_sol_address,
        strategy=resolution.strategy,
    )
