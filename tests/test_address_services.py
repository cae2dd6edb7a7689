import pytest

from app.core.chain_types import ChainFamily
from app.core.errors import InvalidAddress
from app.services.address import (
    has_valid_checksum,
    is_valid_address_for_family,
    is_valid_evm_address,
    is_valid_solana_address,
    normalize_evm_address,
)


def test_address_validation_evm():
    address = "0x1234567890abcdef1234567890ABCDEF12345678"
    assert is_valid_evm_address(address) is True
    assert is_valid_evm_address(address[:-1]) is False
    assert is_valid_evm_address("1234567890abcdef1234567890abcdef12345678") is False
    assert is_valid_evm_address("0xZZ34567890abcdef1234567890abcdef12345678") is False


def test_address_validation_solana():
    solana_address = "So11111111111111111111111111111111111111112"
    assert is_valid_solana_address(solana_address) is True
    assert is_valid_solana_address("O0lNotBase58") is False
    assert is_valid_solana_address("1" * 31) is False


def test_address_validation_by_family():
    evm = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
    sol = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
    assert is_valid_address_for_family(evm, ChainFamily.EVM) is True
    assert is_valid_address_for_family(evm, ChainFamily.SOLANA) is False
    assert is_valid_address_for_family(sol, ChainFamily.SOLANA) is True
    assert is_valid_address_for_family(sol, ChainFamily.EVM) is False


def test_normalize_evm_address_checksums():
    assert (
        normalize_evm_address("0x036cbd53842c5426634e7929541ec2318f3dcf7e")
        == "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
    )


def test_normalize_evm_address_accepts_bad_checksum_case():
    # Mixed case that is not a valid checksum is still normalized, not rejected.
    assert (
        normalize_evm_address("0x036CBD53842c5426634e7929541eC2318f3dCF7e")
        == "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
    )


def test_normalize_evm_address_rejects_malformed():
    with pytest.raises(InvalidAddress):
        normalize_evm_address("0x1234")


@pytest.mark.parametrize(
    "address, expected",
    [
        ("0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed", True),
        ("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed", True),
        ("0x5AAEB6053F3E94C9B9A09F33669435E7EF1BEAED", True),
        ("0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAeD", False),
        ("0x5aAeb6053F3E94C9b9A09f3366", False),
    ],
)
def test_has_valid_checksum(address, expected):
    assert has_valid_checksum(address) is expected
