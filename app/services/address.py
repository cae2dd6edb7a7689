"""Helpers for validating and normalizing wallet addresses per chain family."""

from __future__ import annotations

import re
from functools import lru_cache

from eth_utils import is_address, to_checksum_address

from ..core.chain_types import ChainFamily
from ..core.errors import InvalidAddress

_BASE58_ALPHABET = set("123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz")

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_evm_address(address: str) -> bool:
    """Structural check only; mixed-case checksums are not enforced."""

    if not address:
        return False
    return bool(_EVM_ADDRESS_RE.fullmatch(address))


def has_valid_checksum(address: str) -> bool:
    """True for all-lower, all-upper or correctly EIP-55 cased addresses."""

    return is_valid_evm_address(address) and is_address(address)


@lru_cache(maxsize=128)
def is_valid_solana_address(address: str) -> bool:
    if not address:
        return False
    length = len(address)
    if length < 32 or length > 44:
        return False
    return all(ch in _BASE58_ALPHABET for ch in address)


def is_valid_address_for_family(address: str, family: ChainFamily) -> bool:
    if not isinstance(address, str) or not address:
        return False
    if family is ChainFamily.SOLANA:
        return is_valid_solana_address(address)
    return is_valid_evm_address(address)


def normalize_evm_address(address: str) -> str:
    """Return the EIP-55 checksummed form of an EVM address.

    The input casing is ignored. Use ``has_valid_checksum`` first where a
    mistyped mixed-case address must be rejected.
    """

    candidate = (address or "").strip()
    if not is_valid_evm_address(candidate):
        raise InvalidAddress(f"Malformed EVM address: {address!r}", details={"address": address})
    return to_checksum_address(candidate.lower())


__all__ = [
    "is_valid_evm_address",
    "has_valid_checksum",
    "is_valid_solana_address",
    "is_valid_address_for_family",
    "normalize_evm_address",
]
