"""
Withdrawal transaction builder.

Turns a withdrawal request into an unsigned ERC-20 ``transfer`` call. The
builder never holds keys or broadcasts; a ``SigningBackend`` does that.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, Union

from ..core.chain_registry import ChainRegistry, get_chain_registry
from ..core.chain_types import ChainFamily, ChainRef, TokenSymbol, parse_token_symbol
from ..core.erc20 import encode_transfer
from ..core.errors import (
    DecimalsQueryFailed,
    InvalidAddress,
    InvalidAmount,
    RpcFailure,
    UnsupportedChainFamily,
    UnsupportedToken,
)
from ..providers.evm_rpc import EvmRpcClient
from ..types.wallet import WithdrawalCall, WithdrawalReceipt, WithdrawalRequest
from .address import has_valid_checksum, is_valid_address_for_family, normalize_evm_address
from .balances import RpcClientFactory
from .units import parse_units

logger = logging.getLogger(__name__)


class SigningBackend(Protocol):
    """External signer: signs and submits ``{to, data, value}`` for ``sender``."""

    async def send_transaction(self, tx: Dict[str, Any], sender: str) -> str:
        ...


class WithdrawalBuilder:
    def __init__(
        self,
        registry: Optional[ChainRegistry] = None,
        rpc_client_factory: RpcClientFactory = EvmRpcClient,
    ) -> None:
        self._registry = registry
        self._rpc_client_factory = rpc_client_factory

    @property
    def registry(self) -> ChainRegistry:
        return self._registry or get_chain_registry()

    async def build(
        self,
        destination: str,
        amount: str,
        chain: ChainRef,
        token: Union[TokenSymbol, str],
    ) -> WithdrawalCall:
        """
        Build an ERC-20 transfer of ``amount`` ``token`` to ``destination``.

        Raises:
            ChainNotFound: unknown chain
            UnsupportedChainFamily: chain is not EVM
            InvalidAddress: malformed destination or bad checksum
            UnsupportedToken: no contract configured for the token on this chain
            DecimalsQueryFailed: ``decimals()`` could not be read
            InvalidAmount: amount is not a positive decimal representable in base units
        """
        descriptor = self.registry.chain_by_id(chain)
        if descriptor.family is not ChainFamily.EVM:
            raise UnsupportedChainFamily(
                f"Withdrawals are not supported on {descriptor.name}",
                details={"chain": descriptor.key.value, "family": descriptor.family.value},
            )

        if not is_valid_address_for_family(destination, descriptor.family):
            raise InvalidAddress(
                f"Invalid destination address for {descriptor.name}",
                details={"address": destination, "chain": descriptor.key.value},
            )
        if not has_valid_checksum(destination):
            raise InvalidAddress(
                "Destination address has an invalid EIP-55 checksum",
                details={"address": destination, "chain": descriptor.key.value},
            )
        recipient = normalize_evm_address(destination)

        symbol = parse_token_symbol(token)
        if symbol is None:
            raise UnsupportedToken(f"Unknown token: {token!r}", details={"token": str(token)})
        configured = self.registry.require_token_address(descriptor.key, symbol)
        try:
            contract = normalize_evm_address(configured)
        except InvalidAddress as exc:
            raise UnsupportedToken(
                f"Configured {symbol.value} contract on {descriptor.name} is malformed",
                details={"chain": descriptor.key.value, "token": symbol.value},
            ) from exc

        try:
            async with self._rpc_client_factory(descriptor.rpc_url) as client:
                decimals = await client.erc20_decimals(contract)
        except RpcFailure as exc:
            raise DecimalsQueryFailed(
                f"Could not read decimals for {symbol.value} on {descriptor.name}: {exc.message}",
                details={"chain": descriptor.key.value, "token": symbol.value, "contract": contract},
            ) from exc

        base_units = parse_units(amount, decimals)
        if base_units <= 0:
            raise InvalidAmount("Withdrawal amount must be greater than zero", details={"amount": amount})

        call = WithdrawalCall(
            to=contract,
            data=encode_transfer(recipient, base_units),
            value=0,
            chain=descriptor.key,
            chain_id=descriptor.chain_id,
            token=symbol,
            destination=recipient,
            amount=amount,
            amount_base_units=base_units,
            decimals=decimals,
        )
        logger.info(
            "withdrawal built",
            extra={
                "event": "withdrawal_built",
                "chain": descriptor.key.value,
                "token": symbol.value,
                "amount_base_units": base_units,
            },
        )
        return call

    async def submit(
        self,
        destination: str,
        amount: str,
        chain: ChainRef,
        token: Union[TokenSymbol, str],
        *,
        sender: str,
        backend: SigningBackend,
    ) -> WithdrawalReceipt:
        """Build the call and hand it to ``backend`` for signing and broadcast."""
        call = await self.build(destination, amount, chain, token)
        tx_hash = await backend.send_transaction(call.as_transaction(), sender)
        explorer_url = self.registry.chain_by_id(call.chain).explorer_tx_url(tx_hash)
        logger.info(
            "withdrawal submitted",
            extra={"event": "withdrawal_submitted", "chain": call.chain.value, "tx_hash": tx_hash},
        )
        return WithdrawalReceipt(tx_hash=tx_hash, explorer_url=explorer_url, call=call)


# Singleton instance
_builder: Optional[WithdrawalBuilder] = None


def get_withdrawal_builder() -> WithdrawalBuilder:
    """Get the singleton WithdrawalBuilder instance."""
    global _builder
    if _builder is None:
        _builder = WithdrawalBuilder()
    return _builder


async def build_withdrawal(
    destination: str,
    amount: str,
    chain: ChainRef,
    token: Union[TokenSymbol, str],
) -> WithdrawalCall:
    return await get_withdrawal_builder().build(destination, amount, chain, token)


async def submit_withdrawal(
    request: WithdrawalRequest,
    sender: str,
    backend: SigningBackend,
) -> WithdrawalReceipt:
    return await get_withdrawal_builder().submit(
        request.destination,
        request.amount,
        request.chain,
        request.token,
        sender=sender,
        backend=backend,
    )


__all__ = [
    "SigningBackend",
    "WithdrawalBuilder",
    "get_withdrawal_builder",
    "build_withdrawal",
    "submit_withdrawal",
]
