"""Derived design metadata — a pure fold over instances and catalog data.

    total_price      = Σ unit price
    dimensions       = union of every instance's rotated extent
    estimated_weight = Σ weight
    capacity         = Σ per-part capacity
    age_range        = intersection of part age ranges
"""

from __future__ import annotations

import logging

from playset.constants import DEFAULT_AGE_RANGE
from playset.core.catalog_repository import CatalogRepository
from playset.core.geometry import bounding_dimensions, instance_box
from playset.models.catalog import AgeRange, CatalogPart
from playset.models.design import Design, DesignMetadata, PlacedInstance

logger = logging.getLogger(__name__)


def resolve_instances(
    instances: list[PlacedInstance], catalog: CatalogRepository,
) -> list[tuple[PlacedInstance, CatalogPart]]:
    """Pair each instance with its published catalog part, in design order.

    Instances whose part is missing or unpublished are left out (validation
    reports them separately).
    """
    resolved = []
    for inst in instances:
        part = catalog.find(inst.catalog_id)
        if part is None:
            logger.warning(
                "Catalog part %s not found for instance %s", inst.catalog_id, inst.instance_id,
            )
            continue
        resolved.append((inst, part))
    return resolved


def compute_metadata(
    instances: list[PlacedInstance], catalog: CatalogRepository,
) -> DesignMetadata:
    """Fold instances into DesignMetadata.

    ``instance_count`` counts every instance, including unresolved ones.
    """
    if not instances:
        return DesignMetadata()

    resolved = resolve_instances(instances, catalog)
    total_price = 0.0
    total_weight = 0.0
    capacity = 0
    min_age, max_age = 0, 99
    boxes = []

    for inst, part in resolved:
        total_price += part.price
        total_weight += part.weight
        capacity += part.metadata.capacity
        min_age = max(min_age, part.metadata.age_range.min_age)
        max_age = min(max_age, part.metadata.age_range.max_age)
        boxes.append(instance_box(inst, part))

    age_range = AgeRange(min_age, max_age) if resolved else AgeRange(*DEFAULT_AGE_RANGE)

    return DesignMetadata(
        total_price=round(total_price, 2),
        dimensions=bounding_dimensions(boxes),
        estimated_weight=round(total_weight, 1),
        age_range=age_range,
        capacity=capacity,
        instance_count=len(instances),
    )


def refresh_metadata(design: Design, catalog: CatalogRepository) -> DesignMetadata:
    """Recompute and store ``design.metadata``; returns the new value."""
    design.metadata = compute_metadata(design.instances, catalog)
    return design.metadata
