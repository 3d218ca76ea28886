"""Unit conversion module — single conversion point for catalog geometry.

All design-level lengths are reported in feet. Catalog parts may declare
their dimensions in feet or metres; convert through this module.

Internal units:
    Length : ft
    Weight : kg
    Angle  : radian (degrees at the API boundary)
"""

import math
from typing import NewType

Ft = NewType('Ft', float)
M = NewType('M', float)
Radian = NewType('Radian', float)

_FT_PER_M = 3.280839895


# ---------------------------------------------------------------------------
# Length conversions
# ---------------------------------------------------------------------------

def m_to_ft(m: float) -> Ft:
    """Metre → foot."""
    return Ft(m * _FT_PER_M)


def ft_to_m(ft: float) -> M:
    """Foot → metre."""
    return M(ft / _FT_PER_M)


LENGTH_UNITS = ("ft", "m")


def to_ft(value: float, unit: str) -> Ft:
    """Convert a length in *unit* ('ft' or 'm') to feet.

    Raises:
        ValueError: If *unit* is not a known length unit.
    """
    if unit == "ft":
        return Ft(value)
    if unit == "m":
        return m_to_ft(value)
    raise ValueError(f"Unknown length unit: {unit!r}")


# ---------------------------------------------------------------------------
# Angle conversions
# ---------------------------------------------------------------------------

def deg_to_rad(deg: float) -> Radian:
    """Degree → Radian."""
    return Radian(deg * (math.pi / 180.0))


def rad_to_deg(rad: float) -> float:
    """Radian → Degree."""
    return rad * (180.0 / math.pi)


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero (currency and display rounding).

    ``round()`` uses banker's rounding, which would make 2.5 → 2.
    """
    factor = 10.0 ** digits
    scaled = abs(value) * factor
    # Absorb binary representation noise (e.g. 1.1 * 100 = 110.00000000000001)
    rounded = math.floor(round(scaled, 6) + 0.5) / factor
    return math.copysign(rounded, value) if rounded else 0.0
