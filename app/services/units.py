"""Exact conversion between integer base units and decimal token amounts."""

from __future__ import annotations

import re
from decimal import Decimal

from ..core.errors import InvalidAmount

_AMOUNT_RE = re.compile(r"^(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?$")
MAX_DECIMALS = 255
MAX_UINT256 = 2**256 - 1


def _check_decimals(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"Invalid token decimals: {decimals!r}")
    return decimals


def format_units(raw: int, decimals: int) -> Decimal:
    """``raw / 10**decimals`` without a float intermediate.

    >>> format_units(1500000, 6)
    Decimal('1.5')
    """

    decimals = _check_decimals(decimals)
    if raw < 0:
        raise ValueError("Raw token amounts are unsigned")
    # String construction is exact; arithmetic helpers like scaleb round to
    # the context precision, which a uint256 can exceed.
    whole, frac = divmod(raw, 10**decimals)
    frac_digits = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return Decimal(f"{whole}.{frac_digits}" if frac_digits else str(whole))


def parse_units(amount: str, decimals: int) -> int:
    """Convert a plain decimal string to integer base units exactly.

    Rejects signs, exponents, empty strings and more fractional digits than
    the token supports, since truncating would move a different amount than
    the user asked for.
    """

    decimals = _check_decimals(decimals)
    text = (amount or "").strip() if isinstance(amount, str) else ""
    match = _AMOUNT_RE.fullmatch(text)
    if not text or match is None or text == ".":
        raise InvalidAmount(f"Invalid amount: {amount!r}", details={"amount": str(amount)})

    whole = match.group("whole") or "0"
    frac = (match.group("frac") or "").rstrip("0")
    if len(frac) > decimals:
        raise InvalidAmount(
            f"Amount {amount!r} has more than {decimals} decimal places",
            details={"amount": text, "decimals": decimals},
        )

    value = int(whole) * 10**decimals + (int(frac.ljust(decimals, "0")) if frac else 0)
    if value > MAX_UINT256:
        raise InvalidAmount(f"Amount {amount!r} exceeds uint256", details={"amount": text})
    return value


__all__ = ["format_units", "parse_units", "MAX_UINT256"]
