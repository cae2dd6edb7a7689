"""Deterministic placeholder wallet addresses.

Used when a user has no custodial wallet linked with the identity provider.
The output is stable for a given seed and portable across implementations,
but it is a display placeholder: nothing holds a key for these addresses.
"""

from __future__ import annotations

import struct

_MASK32 = 0xFFFFFFFF
_DJB2_SEED = 5381
ADDRESS_BYTES = 20


def _utf16_code_units(seed: str) -> tuple[int, ...]:
    encoded = seed.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(encoded) // 2}H", encoded)


def djb2(seed: str) -> int:
    """32-bit djb2 hash (``h * 33 + c``) over the UTF-16 code units of ``seed``."""

    h = _DJB2_SEED
    for code_unit in _utf16_code_units(seed):
        h = ((h << 5) + h + code_unit) & _MASK32
    return h


def xorshift_bytes(state: int, count: int = ADDRESS_BYTES) -> bytes:
    """Expand a 32-bit state into ``count`` bytes with xorshift32 (13, 17, 5)."""

    out = bytearray()
    s = state & _MASK32
    for _ in range(count):
        s ^= (s << 13) & _MASK32
        s ^= s >> 17
        s ^= (s << 5) & _MASK32
        out.append(s & 0xFF)
    return bytes(out)


def generate_address(seed: str, prefix: str = "0x") -> str:
    """Return ``prefix`` + 40 lowercase hex characters derived from ``seed``."""

    return prefix + xorshift_bytes(djb2(seed)).hex()


def fallback_seeds(user_key: str) -> tuple[str, str]:
    """Seeds for the EVM and Solana placeholder addresses of one user."""

    return f"{user_key}:evm", f"{user_key}:sol"


__all__ = ["ADDRESS_BYTES", "djb2", "xorshift_bytes", "generate_address", "fallback_seeds"]
