"""Quote intake — the trust boundary for client-submitted quote requests.

Nothing in a submission is trusted: the design is re-parsed, its metadata
recomputed against the catalog, every validation rule re-run and the price
recomputed. A client total that disagrees with the server price is logged
and ignored.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from playset.core.catalog_repository import CatalogRepository
from playset.core.exceptions import QuoteRejected
from playset.core.metadata import refresh_metadata
from playset.core.pricing_engine import ensure_valid_pricing, pricing_breakdown
from playset.core.serializers import dict_to_design
from playset.core.validation_engine import ValidationEngine
from playset.models.config import PricingRates, ValidationLimits
from playset.models.design import Design
from playset.models.quote import AcceptedQuote, CustomerInfo, QuoteSubmission

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PRICE_TOLERANCE = 0.01


def validate_customer(customer: CustomerInfo) -> list[str]:
    """Return the problems with the contact fields (empty when valid)."""
    problems = []
    if len(customer.name.strip()) < 2:
        problems.append("Valid name is required")
    if not customer.email:
        problems.append("Email is required")
    elif not _EMAIL_RE.match(customer.email):
        problems.append("Invalid email format")
    if not customer.phone.strip():
        problems.append("Phone number is required")
    if not customer.city.strip():
        problems.append("City is required")
    if not customer.state.strip():
        problems.append("State/Province is required")
    if not customer.postal_code.strip():
        problems.append("Postal code is required")
    return problems


def parse_submission(payload: dict[str, Any]) -> QuoteSubmission:
    """Wire dict → QuoteSubmission. Unknown customer keys are ignored.

    Raises:
        QuoteRejected: If the design or customer section is missing.
    """
    problems = []
    design = payload.get("design")
    if not isinstance(design, dict):
        problems.append("Design data is required")
    customer = payload.get("customer")
    if not isinstance(customer, dict):
        problems.append("Customer information is required")
    if problems:
        raise QuoteRejected(problems)

    fields = CustomerInfo.__dataclass_fields__
    client_total = payload.get("client_total")
    try:
        client_total = float(client_total) if client_total is not None else None
    except (TypeError, ValueError):
        raise QuoteRejected(["Client total must be a number"]) from None
    return QuoteSubmission(
        design=design,
        customer=CustomerInfo(**{
            k: str(v) for k, v in customer.items() if k in fields and v is not None
        }),
        include_installation=bool(payload.get("include_installation", False)),
        client_total=client_total,
    )


class QuoteIntake:
    """Re-checks and re-prices quote submissions.

    Args:
        catalog: Catalog the design is resolved against.
        limits: Validation limits.
        rates: Pricing rates.
    """

    def __init__(
        self,
        catalog: CatalogRepository,
        limits: ValidationLimits | None = None,
        rates: PricingRates | None = None,
    ) -> None:
        self._catalog = catalog
        self._validator = ValidationEngine(catalog, limits)
        self._rates = rates or PricingRates()

    def accept(self, submission: QuoteSubmission | dict[str, Any]) -> AcceptedQuote:
        """Accept a submission and return it priced server-side.

        Raises:
            QuoteRejected: Bad customer fields (VALIDATION_ERROR), or a
                malformed / empty / invalid design (INVALID_DESIGN).
            PricingInconsistency: The recomputed breakdown failed its
                sanity check.
        """
        if isinstance(submission, dict):
            submission = parse_submission(submission)

        problems = validate_customer(submission.customer)
        design = self._parse_design(submission.design, problems)
        if problems:
            raise QuoteRejected(problems)

        result = self._validator.validate(design)
        if not result.is_valid:
            raise QuoteRejected([e.message for e in result.errors], code="INVALID_DESIGN")

        pricing = ensure_valid_pricing(pricing_breakdown(
            design, self._catalog, submission.customer.location,
            submission.include_installation, self._rates,
        ))

        matched = True
        if submission.client_total is not None:
            matched = abs(submission.client_total - pricing.total) <= _PRICE_TOLERANCE
            if not matched:
                logger.warning(
                    "Client total %.2f differs from server total %.2f for design %r",
                    submission.client_total, pricing.total, design.name,
                )

        return AcceptedQuote(
            design_name=design.name,
            customer=submission.customer,
            pricing=pricing,
            warnings=tuple(w.message for w in result.warnings),
            client_total_matched=matched,
        )

    def _parse_design(self, data: dict[str, Any], problems: list[str]) -> Design:
        try:
            design = dict_to_design(data)
        except (KeyError, ValueError, TypeError) as e:
            raise QuoteRejected([f"Malformed design: {e}"], code="INVALID_DESIGN") from e
        if not design.instances:
            problems.append("Design must have at least one component")
        refresh_metadata(design, self._catalog)
        return design
