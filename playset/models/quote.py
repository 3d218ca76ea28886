"""Quote submission data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from playset.models.pricing import LocationInfo, PricingBreakdown


@dataclass(frozen=True)
class CustomerInfo:
    """Contact fields sent with a quote request."""
    name: str = ""
    email: str = ""
    phone: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    message: str = ""

    @property
    def location(self) -> LocationInfo:
        return LocationInfo(city=self.city, state=self.state, postal_code=self.postal_code)


@dataclass
class QuoteSubmission:
    """Payload produced by the editing client.

    ``client_total`` is informational only; the intake boundary always
    recomputes the price from ``design``.
    """
    design: dict[str, Any] = field(default_factory=dict)
    customer: CustomerInfo = field(default_factory=CustomerInfo)
    include_installation: bool = False
    client_total: float | None = None


@dataclass(frozen=True)
class AcceptedQuote:
    """Quote accepted at the intake boundary, priced server-side."""
    design_name: str
    customer: CustomerInfo
    pricing: PricingBreakdown
    warnings: tuple[str, ...] = ()
    client_total_matched: bool = True
