from typing import Union

from ..config import BYTES_PER_GB, OPERATIONS_PER_MILLION

Number = Union[int, float]

UNIT_MILLION_OPS = "million operations"
UNIT_GB = "GB"
UNIT_SECOND = "second"
UNIT_GIB_SECOND = "GiB-second"

KNOWN_UNITS = (UNIT_MILLION_OPS, UNIT_GB, UNIT_SECOND, UNIT_GIB_SECOND)


def paid_after_allowance(used: Number, free: Number) -> Number:
    """Usage left to pay for once a flat allowance is consumed (never negative)."""
    return max(0, used - free)


def billed_units(quantity: Number, unit: str) -> float:
    """Convert a raw metric quantity into the unit a price is quoted in."""

    # ---- per million operations / requests ----
    if unit == UNIT_MILLION_OPS:
        return quantity / OPERATIONS_PER_MILLION

    # ---- bytes sent, priced per GB (GiB, as Google bills it) ----
    if unit == UNIT_GB:
        return quantity / BYTES_PER_GB

    # ---- time-based meters are already in the billed unit ----
    if unit in (UNIT_SECOND, UNIT_GIB_SECOND):
        return float(quantity)

    raise ValueError(f"Unknown price unit: {unit!r}")


def format_quantity(quantity: Number, unit: str) -> str:
    if unit == UNIT_GB:
        return f"{quantity} bytes ({quantity / BYTES_PER_GB:.2f} GB)"
    if unit == UNIT_MILLION_OPS:
        return f"{quantity} ({quantity / OPERATIONS_PER_MILLION:.2f} million)"
    if isinstance(quantity, float):
        return f"{quantity:.2f} {unit}s"
    return f"{quantity} {unit}s"
