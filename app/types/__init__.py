from .requests import SessionRequest
from .responses import ChainInfo, ChainsResponse, DepositAddressResponse, SessionResponse
from .wallet import (
    ChainBalance,
    DepositAddressSet,
    IdentityUser,
    LegacyTokenView,
    LinkedAccount,
    PortfolioSnapshot,
    TokenBalance,
    WithdrawalCall,
    WithdrawalReceipt,
    WithdrawalRequest,
)

__all__ = [
    "SessionRequest",
    "SessionResponse",
    "DepositAddressResponse",
    "ChainInfo",
    "ChainsResponse",
    "TokenBalance",
    "ChainBalance",
    "LegacyTokenView",
    "PortfolioSnapshot",
    "LinkedAccount",
    "IdentityUser",
    "DepositAddressSet",
    "WithdrawalCall",
    "WithdrawalReceipt",
    "WithdrawalRequest",
]
