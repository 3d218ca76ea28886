"""Design data models — placed instances, derived metadata, list summaries.

A placed instance stores only its catalog id and explicit user overrides.
Every catalog field is resolved through the CatalogRepository at read time.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from playset.constants import DEFAULT_AGE_RANGE, DEFAULT_DESIGN_NAME, DESIGN_UNIT
from playset.models.catalog import AgeRange, Vector3


@dataclass
class PlacedInstance:
    """One occurrence of a catalog part inside a design.

    Attributes:
        instance_id: Unique within the design.
        catalog_id: Reference to CatalogPart.id.
        position: Part origin in world coordinates [ft].
        rotation: Rotation about x, y, z [degree].
        customizations: User overrides (color, label, material).
    """
    instance_id: str
    catalog_id: str
    position: Vector3 = field(default_factory=Vector3)
    rotation: Vector3 = field(default_factory=Vector3)
    customizations: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BoundingDimensions:
    """Axis-aligned extent of the whole design [ft]."""
    width: float = 0.0
    depth: float = 0.0
    height: float = 0.0
    unit: str = DESIGN_UNIT

    @property
    def footprint(self) -> float:
        """Ground area width × depth [ft²]."""
        return self.width * self.depth


@dataclass(frozen=True)
class DesignMetadata:
    """Values derived from the instance list. Never edited directly."""
    total_price: float = 0.0
    dimensions: BoundingDimensions = field(default_factory=BoundingDimensions)
    estimated_weight: float = 0.0
    age_range: AgeRange = field(default_factory=lambda: AgeRange(*DEFAULT_AGE_RANGE))
    capacity: int = 0
    instance_count: int = 0


@dataclass
class Design:
    """Complete ordered set of placed instances for one structure.

    Instance order is significant (stacking / visual layering) and is
    preserved by undo/redo.
    """
    id: str | None = None
    name: str = DEFAULT_DESIGN_NAME
    instances: list[PlacedInstance] = field(default_factory=list)
    metadata: DesignMetadata = field(default_factory=DesignMetadata)

    def index_of(self, instance_id: str) -> int:
        """Return the list index of *instance_id*, or -1."""
        for i, inst in enumerate(self.instances):
            if inst.instance_id == instance_id:
                return i
        return -1

    def find(self, instance_id: str) -> PlacedInstance | None:
        idx = self.index_of(instance_id)
        return self.instances[idx] if idx >= 0 else None


@dataclass
class DesignSummary:
    """Lightweight design metadata for list/browser views."""
    id: str = ""
    owner_id: str = ""
    name: str = ""
    instance_count: int = 0
    total_price: float = 0.0
    created_at: str = ""
    updated_at: str = ""
