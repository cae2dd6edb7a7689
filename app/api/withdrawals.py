from fastapi import APIRouter

from ..core.errors import WalletError
from ..services.withdrawal import build_withdrawal
from ..types import WithdrawalCall, WithdrawalRequest
from .errors import to_http_exception

router = APIRouter()


@router.post("/withdrawals/build", response_model=WithdrawalCall)
async def build_withdrawal_call(request: WithdrawalRequest) -> WithdrawalCall:
    """Build an unsigned ERC-20 transfer; signing and broadcast happen client-side."""
    try:
        return await build_withdrawal(request.destination, request.amount, request.chain, request.token)
    except WalletError as exc:
        raise to_http_exception(exc) from exc
