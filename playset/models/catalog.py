"""Catalog data models — read-only part definitions.

Catalog parts are owned by the external catalog system. The engine never
mutates them; placed instances refer to them by id only.

Compatibility rules are a closed set of tagged variants (one dataclass per
rule kind). ``AnyRule`` lists every variant; rule evaluation must handle
each of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class AttachmentKind(Enum):
    """Typed attachment carried by a connection point."""
    DECK = "deck"
    SLIDE = "slide"
    SWING = "swing"
    BEAM = "beam"
    STRUCTURAL = "structural"
    ROOF = "roof"
    ACCESSORY = "accessory"


class RuleKind(Enum):
    REQUIRES = "requires"
    EXCLUDES = "excludes"
    MAX_COUNT = "maxCount"
    MIN_CLEARANCE = "minClearance"
    RECOMMENDS = "recommends"


@dataclass(frozen=True)
class Vector3:
    """3D vector [ft]. z points up; z = 0 is ground level."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Dimensions:
    """Physical extent of a part along its local x (width), y (depth), z (height)."""
    width: float = 0.0
    depth: float = 0.0
    height: float = 0.0
    unit: str = "ft"


@dataclass(frozen=True)
class AgeRange:
    """Inclusive age range in years."""
    min_age: int = 0
    max_age: int = 99

    @property
    def is_empty(self) -> bool:
        return self.min_age > self.max_age

    def __str__(self) -> str:
        return f"{self.min_age}-{self.max_age}"

    @classmethod
    def parse(cls, text: str) -> AgeRange:
        """Parse ``"3-12"`` or ``"5+"`` style labels.

        Raises:
            ValueError: If *text* is not an age range label.
        """
        text = text.strip()
        if text.endswith("+"):
            return cls(int(text[:-1]), 99)
        low, sep, high = text.partition("-")
        if not sep:
            raise ValueError(f"Invalid age range: {text!r}")
        return cls(int(low), int(high))


@dataclass(frozen=True)
class ConnectionPoint:
    """Declared attachment location on a part.

    Attributes:
        id: Point identifier, unique within the part.
        position: Offset from the part origin in part-local axes [ft].
        kind: Attachment kind offered at this point.
        mates_with: Kinds this point accepts from an adjoining point.
    """
    id: str
    position: Vector3 = field(default_factory=Vector3)
    kind: AttachmentKind = AttachmentKind.STRUCTURAL
    mates_with: frozenset[AttachmentKind] = frozenset()

    def accepts(self, other: ConnectionPoint) -> bool:
        return other.kind in self.mates_with


# ── Compatibility rule variants ──


@dataclass(frozen=True)
class RequiresRule:
    """The part needs a partner somewhere in the design.

    Satisfied when another instance offers a connection point of
    ``attachment`` that the requiring part accepts, or when another
    instance's part id or category is listed in ``targets``.
    """
    attachment: AttachmentKind | None = None
    targets: tuple[str, ...] = ()
    message: str = ""
    kind: RuleKind = field(default=RuleKind.REQUIRES, init=False)


@dataclass(frozen=True)
class ExcludesRule:
    """The part may not coexist with any part id or category in ``targets``."""
    targets: tuple[str, ...] = ()
    message: str = ""
    kind: RuleKind = field(default=RuleKind.EXCLUDES, init=False)


@dataclass(frozen=True)
class MaxCountRule:
    """At most ``limit`` instances of ``category`` may coexist."""
    category: str = ""
    limit: int = 1
    message: str = ""
    kind: RuleKind = field(default=RuleKind.MAX_COUNT, init=False)


@dataclass(frozen=True)
class MinClearanceRule:
    """Keep ``distance`` ft of horizontal clearance around the part.

    Applies to every other instance, or only to ``targets`` (ids or
    categories) when given. Instances joined to the part through a mated
    connection point are exempt.
    """
    distance: float = 0.0
    targets: tuple[str, ...] = ()
    message: str = ""
    kind: RuleKind = field(default=RuleKind.MIN_CLEARANCE, init=False)


@dataclass(frozen=True)
class RecommendsRule:
    """Suggest (warning only) a partner part id or category."""
    targets: tuple[str, ...] = ()
    message: str = ""
    kind: RuleKind = field(default=RuleKind.RECOMMENDS, init=False)


AnyRule = Union[RequiresRule, ExcludesRule, MaxCountRule, MinClearanceRule, RecommendsRule]


@dataclass(frozen=True)
class PartMetadata:
    """Free-form catalog metadata used by aggregation and validation.

    Attributes:
        age_range: Suitable ages.
        capacity: Users this part adds to the structure's capacity.
        tier: Product tier (Essential, Premium, Luxury).
        colors: Colour names the part ships in.
        materials: Material names.
        requires_ground_support: Must rest on the ground or another part.
        stackable_with: Part ids / categories this part may overlap.
        max_load_kg: Load rating when the part is a ground anchor.
        max_capacity: Safety cap on the structure's aggregate capacity.
    """
    age_range: AgeRange = field(default_factory=lambda: AgeRange(3, 12))
    capacity: int = 0
    tier: str | None = None
    colors: tuple[str, ...] = ()
    materials: tuple[str, ...] = ()
    requires_ground_support: bool = False
    stackable_with: tuple[str, ...] = ()
    max_load_kg: float | None = None
    max_capacity: int | None = None


@dataclass(frozen=True)
class CatalogPart:
    """A purchasable modular piece."""
    id: str
    name: str = ""
    category: str = ""
    subcategory: str | None = None
    price: float = 0.0
    dimensions: Dimensions = field(default_factory=Dimensions)
    weight: float = 0.0
    connection_points: tuple[ConnectionPoint, ...] = ()
    rules: tuple[AnyRule, ...] = ()
    metadata: PartMetadata = field(default_factory=PartMetadata)
    model_ref: str = ""
    thumbnail: str = ""
    published: bool = True

    def matches(self, target: str) -> bool:
        """True if *target* names this part's id or category."""
        return target == self.id or target == self.category

    def matches_any(self, targets: tuple[str, ...]) -> bool:
        return any(self.matches(t) for t in targets)
