"""Conversions between hex quantities, atto-units and display units."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Optional

from flow_evm_mcp.tools.validators import is_hex_quantity

GWEI_DECIMALS = 9
NATIVE_DECIMALS = 18


def hex_to_int(value: Any) -> int:
    """Parse a ``0x``-prefixed hex quantity as an unsigned integer."""
    if not is_hex_quantity(value):
        raise ValueError(f"expected a hex quantity, got {value!r}")
    return int(value, 16)


def format_units(amount: int, decimals: int, places: int) -> str:
    """
    Render ``amount / 10**decimals`` with exactly ``places`` decimal places.

    Decimal arithmetic keeps the conversion exact for every uint256 value; only
    the final digit is rounded (half-up).
    """
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = Decimal(amount).scaleb(-decimals)
        quantized = scaled.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
        return f"{quantized:f}"


def wei_to_gwei(amount: int) -> str:
    return format_units(amount, GWEI_DECIMALS, 2)


def wei_to_native(amount: int) -> str:
    return format_units(amount, NATIVE_DECIMALS, 6)


def block_number_text(value: Optional[str]) -> str:
    # Pending logs carry no block number yet.
    if value is None:
        return "pending"
    return str(hex_to_int(value))
