"""Engine configuration — pricing rates and validation limits.

Defaults come from ``playset.constants``. Both dataclasses accept partial
dicts (e.g. persisted ``app_settings`` overrides) through ``from_dict``;
unknown keys are ignored and values of the wrong type are logged and skipped.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any

from playset import constants as c

logger = logging.getLogger(__name__)


def _coerce(default: Any, value: Any) -> Any:
    """Convert *value* to the type of *default*.

    Raises:
        TypeError: If *value* cannot stand in for *default*.
    """
    if isinstance(default, tuple):
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"expected a list, got {type(value).__name__}")
        if default and all(not isinstance(d, str) for d in default) and len(value) != len(default):
            raise TypeError(f"expected {len(default)} values, got {len(value)}")
        sample = default[0] if default else ""
        return tuple(_coerce(sample, v) for v in value)
    if isinstance(value, bool):
        raise TypeError("booleans are not valid here")
    if isinstance(default, float) and isinstance(value, (int, float)):
        return float(value)
    if isinstance(default, int) and isinstance(value, int):
        return value
    if isinstance(default, str) and isinstance(value, str):
        return value
    raise TypeError(f"expected {type(default).__name__}, got {type(value).__name__}")


def _from_dict(cls, data: dict[str, Any]):
    defaults = cls()
    names = {f.name for f in dataclasses.fields(cls)}
    kwargs = {}
    for key, value in data.items():
        if key not in names:
            continue
        try:
            kwargs[key] = _coerce(getattr(defaults, key), value)
        except TypeError as e:
            logger.warning("Ignoring %s override %r: %s", cls.__name__, key, e)
    return cls(**kwargs)


@dataclass(frozen=True)
class PricingRates:
    """Shipping and installation rates.

    Attributes:
        shipping_base: Flat shipping fee.
        low_distance_rate: Distance fee for the low-cost localities.
        high_distance_rate: Distance fee everywhere else.
        rate_per_kg: Weight fee per kg of estimated weight.
        low_cost_localities: Lower-case city names matched by substring.
        installation_base: Flat installation fee.
        installation_per_part: Installation fee per placed instance.
        height_thresholds: (lower, upper) bounding height [ft].
        footprint_thresholds: (lower, upper) footprint [ft²].
        count_thresholds: (lower, upper) instance count.
        small_step: Multiplier increment past a lower threshold.
        large_step: Multiplier increment past an upper threshold.
    """
    shipping_base: float = c.SHIPPING_BASE_RATE
    low_distance_rate: float = c.SHIPPING_LOW_DISTANCE_RATE
    high_distance_rate: float = c.SHIPPING_HIGH_DISTANCE_RATE
    rate_per_kg: float = c.SHIPPING_RATE_PER_KG
    low_cost_localities: tuple[str, ...] = c.LOW_COST_LOCALITIES
    installation_base: float = c.INSTALLATION_BASE_RATE
    installation_per_part: float = c.INSTALLATION_RATE_PER_PART
    height_thresholds: tuple[float, float] = c.COMPLEXITY_HEIGHT_THRESHOLDS_FT
    footprint_thresholds: tuple[float, float] = c.COMPLEXITY_FOOTPRINT_THRESHOLDS_SQFT
    count_thresholds: tuple[int, int] = c.COMPLEXITY_COUNT_THRESHOLDS
    small_step: float = c.COMPLEXITY_SMALL_STEP
    large_step: float = c.COMPLEXITY_LARGE_STEP

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PricingRates:
        return _from_dict(cls, data)


@dataclass(frozen=True)
class ValidationLimits:
    """Structural / safety limits and geometric tolerances."""
    max_height_ft: float = c.MAX_HEIGHT_FT
    max_total_weight_kg: float = c.MAX_TOTAL_WEIGHT_KG
    min_elevated_deck_ft: float = c.MIN_ELEVATED_DECK_FT
    max_distinct_colors: int = c.MAX_DISTINCT_COLORS
    connection_tolerance_ft: float = c.CONNECTION_TOLERANCE_FT
    overlap_tolerance_ft: float = c.OVERLAP_TOLERANCE_FT
    ground_tolerance_ft: float = c.GROUND_TOLERANCE_FT
    deck_category: str = "playdecks"
    access_category: str = "access"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationLimits:
        return _from_dict(cls, data)
