from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionResponse(_CamelModel):
    deposit_addresses: Dict[str, Dict[str, str]] = Field(
        description="CAIP-2 chain id → {asset: deposit address}"
    )
    default_evm_address: str = Field(description="Address used for every EVM chain")
    default_sol_address: str = Field(description="Address used for every Solana chain")
    strategy: str = Field(description="Deposit address assignment strategy")


class DepositAddressResponse(_CamelModel):
    address: str = Field(description="Deterministic deposit address for the account")


class ChainInfo(_CamelModel):
    key: str
    chain_id: int
    caip2: str
    name: str
    family: str
    native_symbol: str
    explorer: str = Field(description="Transaction URL template containing {tx_hash}")
    tokens: Dict[str, str] = Field(default_factory=dict, description="Token symbol → contract address")


class ChainsResponse(_CamelModel):
    default: str = Field(description="Chain used when a lookup falls back")
    chains: List[ChainInfo] = Field(default_factory=list)
