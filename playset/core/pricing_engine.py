"""Pricing engine — component lines, shipping, installation and totals.

Pure functions of (Design, Catalog, LocationInfo, PricingRates). Money is
rounded half-up; ``round()`` would apply banker's rounding.

    shipping      = base + distance(location) + round(rate_per_kg × weight)
    installation  = round((base + per_part × count) × complexity)
    total         = subtotal + shipping + installation (when included)
"""

from __future__ import annotations

import logging

from playset.core.catalog_repository import CatalogRepository
from playset.core.exceptions import PricingInconsistency
from playset.core.units import round_half_up
from playset.models.config import PricingRates
from playset.models.design import Design
from playset.models.pricing import (
    ComponentPricing,
    InstallationEstimate,
    LocationInfo,
    PricingBreakdown,
    ShippingEstimate,
)

logger = logging.getLogger(__name__)

_DEFAULT_RATES = PricingRates()


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def component_pricing(
    design: Design, catalog: CatalogRepository,
) -> tuple[list[ComponentPricing], float]:
    """Group instances by catalog part, in order of first appearance.

    Returns:
        (component lines, subtotal). Instances whose part does not resolve
        are left out and logged.
    """
    lines: dict[str, list] = {}
    for inst in design.instances:
        part = catalog.find(inst.catalog_id)
        if part is None:
            logger.warning(
                "No catalog price for instance %s (%s)", inst.instance_id, inst.catalog_id,
            )
            continue
        if inst.catalog_id in lines:
            lines[inst.catalog_id][2] += 1
        else:
            lines[inst.catalog_id] = [part.id, part.name, 1, part.price]

    components = [
        ComponentPricing(
            catalog_id=cid,
            name=name,
            quantity=qty,
            unit_price=unit,
            total_price=round_half_up(qty * unit, 2),
        )
        for cid, name, qty, unit in lines.values()
    ]
    subtotal = round_half_up(sum(c.total_price for c in components), 2)
    return components, subtotal


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------

def distance_rate(location: LocationInfo | None, rates: PricingRates = _DEFAULT_RATES) -> float:
    """Low rate when the city contains a low-cost locality name, else high rate."""
    city = (location.city if location else "").lower()
    if city and any(name in city for name in rates.low_cost_localities):
        return rates.low_distance_rate
    return rates.high_distance_rate


def weight_rate(weight_kg: float, rates: PricingRates = _DEFAULT_RATES) -> float:
    return round_half_up(weight_kg * rates.rate_per_kg)


def shipping_estimate(
    design: Design,
    location: LocationInfo | None,
    rates: PricingRates = _DEFAULT_RATES,
) -> ShippingEstimate:
    base = rates.shipping_base
    distance = distance_rate(location, rates)
    weight = weight_rate(design.metadata.estimated_weight, rates)
    return ShippingEstimate(
        base_rate=base,
        distance_rate=distance,
        weight_rate=weight,
        total=round_half_up(base + distance + weight),
    )


# ---------------------------------------------------------------------------
# Installation
# ---------------------------------------------------------------------------

def _step(value: float, thresholds: tuple[float, float], rates: PricingRates) -> float:
    lower, upper = thresholds
    if value > upper:
        return rates.large_step
    if value > lower:
        return rates.small_step
    return 0.0


def complexity_multiplier(design: Design, rates: PricingRates = _DEFAULT_RATES) -> float:
    """1.0 plus additive increments for height, footprint and instance count."""
    dims = design.metadata.dimensions
    multiplier = 1.0
    multiplier += _step(dims.height, rates.height_thresholds, rates)
    multiplier += _step(dims.footprint, rates.footprint_thresholds, rates)
    multiplier += _step(design.metadata.instance_count, rates.count_thresholds, rates)
    return round_half_up(multiplier, 2)


def installation_estimate(
    design: Design, rates: PricingRates = _DEFAULT_RATES,
) -> InstallationEstimate:
    base = rates.installation_base
    component_rate = design.metadata.instance_count * rates.installation_per_part
    multiplier = complexity_multiplier(design, rates)
    return InstallationEstimate(
        base_rate=base,
        component_rate=component_rate,
        complexity_multiplier=multiplier,
        total=round_half_up((base + component_rate) * multiplier),
    )


# ---------------------------------------------------------------------------
# Breakdown
# ---------------------------------------------------------------------------

def pricing_breakdown(
    design: Design,
    catalog: CatalogRepository,
    location: LocationInfo | None = None,
    include_installation: bool = False,
    rates: PricingRates = _DEFAULT_RATES,
) -> PricingBreakdown:
    """Full price of *design* delivered to *location*."""
    components, subtotal = component_pricing(design, catalog)
    shipping = shipping_estimate(design, location, rates)
    installation = installation_estimate(design, rates) if include_installation else None
    total = subtotal + shipping.total + (installation.total if installation else 0.0)
    return PricingBreakdown(
        components=tuple(components),
        subtotal=subtotal,
        shipping=shipping,
        installation=installation,
        total=round_half_up(total, 2),
    )


def validate_pricing(breakdown: PricingBreakdown) -> list[str]:
    """Sanity-check a breakdown. An empty list means it is consistent."""
    problems = []
    if not breakdown.components:
        problems.append("No components in design")
    if breakdown.subtotal <= 0:
        problems.append("Invalid subtotal")
    if breakdown.shipping.total < 0:
        problems.append("Invalid shipping cost")
    if breakdown.total <= 0:
        problems.append("Invalid total price")
    return problems


def ensure_valid_pricing(breakdown: PricingBreakdown) -> PricingBreakdown:
    """Return *breakdown* unchanged, or raise PricingInconsistency."""
    problems = validate_pricing(breakdown)
    if problems:
        logger.error("Pricing inconsistency: %s", "; ".join(problems))
        raise PricingInconsistency(problems)
    return breakdown


def format_price(amount: float, currency: str = "ZAR") -> str:
    """Display string, e.g. ``R 12,500``."""
    text = f"{amount:,.2f}".removesuffix(".00")
    if currency == "ZAR":
        return f"R {text}"
    return f"{currency} {text}"
