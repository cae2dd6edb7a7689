"""
Minimal ERC-20 ABI encoding for the three calls the wallet needs.
"""

from ..services.units import MAX_UINT256

# Function selectors (first 4 bytes of keccak256 of the signature)
ERC20_BALANCE_OF_SELECTOR = "0x70a08231"  # balanceOf(address)
ERC20_DECIMALS_SELECTOR = "0x313ce567"  # decimals()
ERC20_TRANSFER_SELECTOR = "0xa9059cbb"  # transfer(address,uint256)


def _encode_uint256(value: int) -> str:
    """Encode a uint256 as a 32-byte hex string (without 0x prefix)."""
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"Value out of uint256 range: {value}")
    return format(value, "064x")


def _encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = address.lower()
    if addr.startswith("0x"):
        addr = addr[2:]
    if len(addr) != 40:
        raise ValueError(f"Address must be 20 bytes: {address!r}")
    return addr.zfill(64)


def encode_balance_of(owner: str) -> str:
    return ERC20_BALANCE_OF_SELECTOR + _encode_address(owner)


def encode_decimals() -> str:
    return ERC20_DECIMALS_SELECTOR


def encode_transfer(to_address: str, amount: int) -> str:
    return ERC20_TRANSFER_SELECTOR + _encode_address(to_address) + _encode_uint256(amount)


def decode_uint256(result: str) -> int:
    """Decode the first 32-byte word of an ``eth_call`` result."""
    if not isinstance(result, str) or not result.startswith("0x"):
        raise ValueError(f"Malformed call result: {result!r}")
    body = result[2:]
    if not body:
        # Calls to addresses without code return "0x".
        raise ValueError("Empty call result (no contract at address?)")
    return int(body[:64], 16)


__all__ = [
    "ERC20_BALANCE_OF_SELECTOR",
    "ERC20_DECIMALS_SELECTOR",
    "ERC20_TRANSFER_SELECTOR",
    "encode_balance_of",
    "encode_decimals",
    "encode_transfer",
    "decode_uint256",
]
