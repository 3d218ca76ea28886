"""Quote submission payloads built from the working design."""

from __future__ import annotations

import dataclasses

from playset.core.design_controller import DesignController
from playset.core.exceptions import QuoteBlocked
from playset.core.pricing_engine import pricing_breakdown
from playset.core.serializers import design_to_dict
from playset.models.quote import CustomerInfo, QuoteSubmission


def build_quote_submission(
    controller: DesignController,
    customer: CustomerInfo,
    include_installation: bool | None = None,
) -> QuoteSubmission:
    """Package the current design for quote intake.

    Args:
        controller: Session holding the design and its latest pricing.
        customer: Contact fields.
        include_installation: Defaults to the session's setting.

    Raises:
        QuoteBlocked: While the design has validation errors.
    """
    result = controller.validation
    if not result.is_valid:
        raise QuoteBlocked(
            f"Design has {len(result.errors)} validation error(s): "
            + "; ".join(e.message for e in result.errors)
        )
    if include_installation is None:
        include_installation = controller.include_installation
    if include_installation == controller.include_installation:
        client_total = controller.pricing.total
    else:
        client_total = pricing_breakdown(
            controller.design, controller.catalog, controller.location,
            include_installation, controller.rates,
        ).total
    return QuoteSubmission(
        design=design_to_dict(controller.design),
        customer=customer,
        include_installation=include_installation,
        client_total=client_total,
    )


def quote_submission_to_dict(submission: QuoteSubmission) -> dict:
    """Wire form of a submission."""
    return {
        "design": submission.design,
        "customer": dataclasses.asdict(submission.customer),
        "include_installation": submission.include_installation,
        "client_total": submission.client_total,
    }
