from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer

from ..core.chain_types import ChainKey, PriceFamily, TokenSymbol


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: TokenSymbol = Field(description="Token symbol (USDC, USDT)")
    raw: int = Field(ge=0, description="Raw on-chain integer amount")
    decimals: int = Field(ge=0, description="Decimals reported by the token contract")
    amount: Decimal = Field(ge=0, description="raw / 10**decimals")

    @field_serializer("amount")
    def _serialize_amount(self, value: Decimal) -> str:
        return str(value)


class ChainBalance(BaseModel):
    """Balances for one address on one chain. Replaced, never patched."""

    model_config = ConfigDict(frozen=True)

    chain: ChainKey = Field(description="Chain the balances were read from")
    native: Decimal = Field(default=Decimal("0"), ge=0, description="Native coin amount")
    tokens: Dict[TokenSymbol, Decimal] = Field(default_factory=dict, description="Token symbol → amount")
    errors: List[str] = Field(default_factory=list, description="Fields that degraded to zero")

    @classmethod
    def zero(cls, chain: ChainKey, tokens: List[TokenSymbol], errors: Optional[List[str]] = None) -> "ChainBalance":
        return cls(chain=chain, tokens={symbol: Decimal("0") for symbol in tokens}, errors=errors or [])

    def token(self, symbol: TokenSymbol) -> Decimal:
        return self.tokens.get(symbol, Decimal("0"))

    @field_serializer("native")
    def _serialize_native(self, value: Decimal) -> str:
        return str(value)

    @field_serializer("tokens")
    def _serialize_tokens(self, value: Dict[TokenSymbol, Decimal]) -> Dict[str, str]:
        return {symbol.value: str(amount) for symbol, amount in value.items()}


class LegacyTokenView(BaseModel):
    """Per-symbol sums across chains, kept for older display code."""

    model_config = ConfigDict(frozen=True)

    usdc: Decimal = Decimal("0")
    usdt: Decimal = Decimal("0")
    eth: Decimal = Decimal("0")
    sol: Decimal = Decimal("0")

    @field_serializer("usdc", "usdt", "eth", "sol")
    def _serialize_amounts(self, value: Decimal) -> str:
        return str(value)


class PortfolioSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str = Field(description="Wallet address that was queried")
    portfolio: Decimal = Field(description="Total USD value across chains")
    cash: Decimal = Field(description="Stablecoin-only USD value")
    chains: Dict[ChainKey, ChainBalance] = Field(default_factory=dict)
    tokens: LegacyTokenView = Field(default_factory=LegacyTokenView)
    prices: Dict[PriceFamily, Decimal] = Field(default_factory=dict, description="USD price used per native-coin family")
    fetched_at: datetime = Field(default_factory=_utcnow)

    @field_serializer("portfolio", "cash")
    def _serialize_totals(self, value: Decimal) -> str:
        return str(value)

    @field_serializer("prices")
    def _serialize_prices(self, value: Dict[PriceFamily, Decimal]) -> Dict[str, str]:
        return {family.value: str(price) for family, price in value.items()}


class LinkedAccount(BaseModel):
    """Linked account record from the identity provider."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = ""
    connector_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("connector_type", "connectorType")
    )
    chain_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("chain_type", "chainType"))
    chain_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("chain_id", "chainId"))
    wallet_client_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("wallet_client_type", "walletClientType")
    )
    address: Optional[str] = None


class IdentityUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    linked_accounts: List[LinkedAccount] = Field(
        default_factory=list, validation_alias=AliasChoices("linked_accounts", "linkedAccounts")
    )


class DepositAddressSet(BaseModel):
    """CAIP-2 chain id → {token symbol (lowercase) → address}."""

    model_config = ConfigDict(frozen=True)

    addresses: Dict[str, Dict[str, str]] = Field(default_factory=dict)

    def address_for(self, chain: str, token: str) -> Optional[str]:
        return self.addresses.get(chain, {}).get(token.lower())


class WithdrawalCall(BaseModel):
    """Unsigned ERC-20 transfer ready for a signing backend."""

    model_config = ConfigDict(frozen=True)

    to: str = Field(description="Token contract the call targets")
    data: str = Field(description="ABI-encoded transfer(address,uint256) calldata")
    value: int = Field(default=0, description="Native value attached (always 0 for ERC-20)")
    chain: ChainKey
    chain_id: int
    token: TokenSymbol
    destination: str
    amount: str = Field(description="Requested amount as given by the caller")
    amount_base_units: int = Field(ge=0)
    decimals: int = Field(ge=0)

    def as_transaction(self) -> Dict[str, object]:
        return {"to": self.to, "data": self.data, "value": self.value}


class WithdrawalReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    tx_hash: str
    explorer_url: str
    call: WithdrawalCall


class WithdrawalRequest(BaseModel):
    """Withdrawal as requested by a user. Amount is validated by the builder."""

    model_config = ConfigDict(frozen=True)

    destination: str = Field(description="Recipient address")
    amount: str = Field(description="Human-readable amount, e.g. '10.50'")
    chain: str = Field(description="Chain key, numeric id or CAIP-2 id")
    token: str = Field(description="Token symbol (USDC, USDT)")
