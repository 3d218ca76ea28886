"""Pricing data models — breakdown lines, shipping and installation estimates."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LocationInfo:
    """Delivery location used for the distance component of shipping."""
    city: str = ""
    state: str = ""
    postal_code: str = ""


@dataclass(frozen=True)
class ComponentPricing:
    """One price line: all instances of a single catalog part."""
    catalog_id: str
    name: str
    quantity: int
    unit_price: float
    total_price: float


@dataclass(frozen=True)
class ShippingEstimate:
    base_rate: float = 0.0
    distance_rate: float = 0.0
    weight_rate: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class InstallationEstimate:
    """Installation cost.

    Attributes:
        base_rate: Flat installation fee.
        component_rate: Per-part fee × instance count.
        complexity_multiplier: 1.0 plus height/footprint/count increments.
        total: round((base_rate + component_rate) × complexity_multiplier).
    """
    base_rate: float = 0.0
    component_rate: float = 0.0
    complexity_multiplier: float = 1.0
    total: float = 0.0


@dataclass(frozen=True)
class PricingBreakdown:
    components: tuple[ComponentPricing, ...] = ()
    subtotal: float = 0.0
    shipping: ShippingEstimate = field(default_factory=ShippingEstimate)
    installation: InstallationEstimate | None = None
    total: float = 0.0
