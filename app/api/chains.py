from fastapi import APIRouter

from ..core.chain_registry import get_chain_registry
from ..types import ChainInfo, ChainsResponse

router = APIRouter()


@router.get("/chains", response_model=ChainsResponse)
async def list_chains() -> ChainsResponse:
    registry = get_chain_registry()
    return ChainsResponse(
        default=registry.default.key.value,
        chains=[
            ChainInfo(
                key=descriptor.key.value,
                chain_id=descriptor.chain_id,
                caip2=descriptor.caip2,
                name=descriptor.name,
                family=descriptor.family.value,
                native_symbol=descriptor.native_symbol,
                explorer=descriptor.explorer_tx_template,
                tokens={symbol.value: address for symbol, address in descriptor.tokens.items()},
            )
            for descriptor in registry.chains()
        ],
    )
