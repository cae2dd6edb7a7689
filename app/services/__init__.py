"""Service layer helpers"""

from .address import (
    is_valid_address_for_family,
    is_valid_evm_address,
    is_valid_solana_address,
    normalize_evm_address,
)
from .address_generator import generate_address
from .units import format_units, parse_units

__all__ = [
    "is_valid_address_for_family",
    "is_valid_evm_address",
    "is_valid_solana_address",
    "normalize_evm_address",
    "generate_address",
    "format_units",
    "parse_units",
]
