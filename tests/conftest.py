"""Shared fixtures — a small catalog covering every rule variant."""

import pytest

from playset.core.catalog_repository import CatalogRepository
from playset.core.metadata import refresh_metadata
from playset.models.catalog import (
    AgeRange,
    AttachmentKind as K,
    CatalogPart,
    ConnectionPoint,
    Dimensions,
    ExcludesRule,
    MaxCountRule,
    MinClearanceRule,
    PartMetadata,
    RecommendsRule,
    RequiresRule,
    Vector3,
)
from playset.models.design import Design, PlacedInstance


def _point(pid, x, y, z, kind, *mates):
    return ConnectionPoint(id=pid, position=Vector3(x, y, z), kind=kind, mates_with=frozenset(mates))


DECK = CatalogPart(
    id="deck-4x4",
    name="4x4 Play Deck",
    category="playdecks",
    price=4500.0,
    dimensions=Dimensions(4, 4, 1),
    weight=120.0,
    connection_points=(_point("edge", 4, 2, 1, K.DECK, K.DECK, K.STRUCTURAL, K.SLIDE, K.ACCESSORY),),
    metadata=PartMetadata(
        age_range=AgeRange(3, 12), capacity=4, tier="Essential",
        colors=("green",), requires_ground_support=True,
    ),
    model_ref="models/deck-4x4.glb",
)

SWING = CatalogPart(
    id="swing-single",
    name="Single Swing",
    category="swings",
    price=1800.0,
    dimensions=Dimensions(2, 2, 7),
    weight=15.0,
    connection_points=(_point("hanger", 1, 1, 7, K.SWING, K.BEAM, K.STRUCTURAL),),
    rules=(RequiresRule(attachment=K.BEAM, message="Swing requires a swing beam"),),
    metadata=PartMetadata(age_range=AgeRange(3, 12), capacity=1, tier="Essential", colors=("green",)),
)

BEAM = CatalogPart(
    id="swing-beam",
    name="Swing Beam",
    category="connectors",
    price=2400.0,
    dimensions=Dimensions(8, 1, 1),
    weight=60.0,
    connection_points=(_point("hook", 1, 0.5, 0, K.BEAM, K.SWING, K.STRUCTURAL),),
    metadata=PartMetadata(age_range=AgeRange(3, 12), tier="Essential", colors=("green",)),
)

SLIDE = CatalogPart(
    id="slide-wave",
    name="Wave Slide",
    category="slides",
    price=3200.0,
    dimensions=Dimensions(2, 8, 4),
    weight=40.0,
    connection_points=(_point("lip", 1, 0, 4, K.SLIDE, K.DECK, K.STRUCTURAL),),
    metadata=PartMetadata(age_range=AgeRange(5, 12), capacity=1, tier="Premium", colors=("yellow",)),
)

LADDER = CatalogPart(
    id="ladder",
    name="Access Ladder",
    category="access",
    price=900.0,
    dimensions=Dimensions(2, 1, 7),
    weight=20.0,
    connection_points=(_point("top", 0, 0.5, 7, K.STRUCTURAL, K.DECK, K.STRUCTURAL),),
    metadata=PartMetadata(age_range=AgeRange(3, 12), tier="Essential", colors=("green",)),
)

ANCHOR = CatalogPart(
    id="anchor-kit",
    name="Ground Anchor Kit",
    category="anchors",
    price=600.0,
    dimensions=Dimensions(1, 1, 1),
    weight=10.0,
    metadata=PartMetadata(max_load_kg=100.0),
)

ROOF = CatalogPart(
    id="roof-canopy",
    name="Canopy Roof",
    category="roofs",
    price=2100.0,
    dimensions=Dimensions(4, 4, 1),
    weight=30.0,
    rules=(MaxCountRule(category="roofs", limit=1),),
    metadata=PartMetadata(colors=("blue",)),
)

TRAMPOLINE = CatalogPart(
    id="trampoline",
    name="Trampoline",
    category="trampolines",
    price=5000.0,
    dimensions=Dimensions(6, 6, 3),
    weight=80.0,
    rules=(ExcludesRule(targets=("swings",)),),
    metadata=PartMetadata(age_range=AgeRange(6, 14), capacity=1),
)

SANDPIT = CatalogPart(
    id="sandpit",
    name="Sandpit",
    category="sandpits",
    price=1500.0,
    dimensions=Dimensions(4, 4, 1),
    weight=50.0,
    rules=(MinClearanceRule(distance=3.0),),
    metadata=PartMetadata(colors=("red",)),
)

TOWER = CatalogPart(
    id="tower-kit",
    name="Tower Kit",
    category="towers",
    price=7000.0,
    dimensions=Dimensions(4, 4, 6),
    weight=200.0,
    rules=(RecommendsRule(targets=("roofs",)),),
    metadata=PartMetadata(capacity=6, max_capacity=8, colors=("brown",)),
)

POST = CatalogPart(
    id="post-9ft",
    name="9 ft Post",
    category="posts",
    price=250.0,
    dimensions=Dimensions(1, 1, 9),
    weight=12.5,
)

METRIC_BENCH = CatalogPart(
    id="bench-metric",
    name="Bench",
    category="accessories",
    price=700.0,
    dimensions=Dimensions(1.2, 0.4, 0.5, unit="m"),
    weight=18.0,
)

RETIRED = CatalogPart(
    id="retired-tower",
    name="Retired Tower",
    category="towers",
    price=9999.0,
    published=False,
)

ALL_PARTS = (
    DECK, SWING, BEAM, SLIDE, LADDER, ANCHOR, ROOF, TRAMPOLINE,
    SANDPIT, TOWER, POST, METRIC_BENCH, RETIRED,
)

# Scenario placement: the beam's hook meets the swing's hanger at (11, 1, 7)
SWING_POSITION = (10.0, 0.0, 0.0)
BEAM_POSITION = (10.0, 0.5, 7.0)


@pytest.fixture
def catalog():
    return CatalogRepository(ALL_PARTS)


def feed_record(**overrides) -> dict:
    """A raw catalog feed record (published) for the deck, with overrides."""
    record = {
        "id": "deck-feed",
        "name": "Feed Deck",
        "category": "playdecks",
        "price": 4500,
        "dimensions": {"width": 4, "depth": 4, "height": 1, "unit": "ft"},
        "weight": 120,
        "connection_points": [
            {"id": "edge", "position": {"x": 4, "y": 2, "z": 1}, "kind": "deck"},
        ],
        "rules": [{"type": "maxCount", "category": "playdecks", "limit": 3}],
        "metadata": {"age_range": "3-12", "capacity": 4, "tier": "Essential"},
        "published": True,
    }
    record.update(overrides)
    return record


def make_design(catalog, *placements, name="Test Design") -> Design:
    """Design from (instance_id, catalog_id, position[, rotation[, customizations]])."""
    instances = []
    for p in placements:
        iid, cid, pos = p[0], p[1], p[2]
        rot = p[3] if len(p) > 3 else (0, 0, 0)
        custom = p[4] if len(p) > 4 else {}
        instances.append(PlacedInstance(iid, cid, Vector3(*pos), Vector3(*rot), dict(custom)))
    design = Design(name=name, instances=instances)
    refresh_metadata(design, catalog)
    return design
