"""Amount helpers: parsing, base-unit conversion, fees and display."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .constants import FEE_PER_MILLE, LAMPORTS_PER_XRS, MAX_DECIMALS, U64_MAX


def parse_amount(value: str) -> Decimal:
    """Parse a user-supplied XRS amount into a positive Decimal."""
    try:
        amount = Decimal(value.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"amount must be a decimal number, got {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"amount must be a decimal number, got {value!r}")
    if amount <= 0:
        raise ValueError(f"amount must be positive, got {value}")
    if -amount.normalize().as_tuple().exponent > MAX_DECIMALS:
        raise ValueError(f"amount supports at most {MAX_DECIMALS} decimal places, got {value}")
    return amount


def to_base_units(amount: Decimal) -> int:
    lamports = amount * LAMPORTS_PER_XRS
    if lamports != lamports.to_integral_value():
        raise ValueError(f"amount {amount} is not a whole number of base units")
    result = int(lamports)
    if result <= 0 or result > U64_MAX:
        raise ValueError(f"amount {amount} is outside the u64 base-unit range")
    return result


def transfer_fee(lamports: int) -> Decimal:
    # Exact: fractional base units are kept rather than rounded.
    return Decimal(lamports) * FEE_PER_MILLE / 1000


def format_xrs(base_units: int | Decimal) -> str:
    value = Decimal(base_units) / LAMPORTS_PER_XRS
    if value == 0:
        return "0"
    return format(value.normalize(), ",f")
