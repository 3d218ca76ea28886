"""Placement geometry — rotated extents and connection point positions.

A part occupies the box [0, width] × [0, depth] × [0, height] in its local
axes, with the origin at the instance position. Rotation is applied about
the origin in x → y → z order (R = Rz · Ry · Rx), angles in degrees.

All results are in feet.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from numpy.typing import NDArray

from playset.core.units import deg_to_rad, to_ft
from playset.models.catalog import CatalogPart, ConnectionPoint, Vector3
from playset.models.design import BoundingDimensions, PlacedInstance


@dataclass(frozen=True)
class Box:
    """Axis-aligned bounding box in world coordinates [ft]."""
    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def depth(self) -> float:
        return self.max_y - self.min_y

    @property
    def height(self) -> float:
        return self.max_z - self.min_z

    def overlap_depths(self, other: Box) -> tuple[float, float, float]:
        """Penetration depth along x, y, z (negative = separated)."""
        return (
            min(self.max_x, other.max_x) - max(self.min_x, other.min_x),
            min(self.max_y, other.max_y) - max(self.min_y, other.min_y),
            min(self.max_z, other.max_z) - max(self.min_z, other.min_z),
        )

    def horizontal_gap(self, other: Box) -> float:
        """Shortest horizontal distance between two footprints (0 if touching)."""
        dx = max(other.min_x - self.max_x, self.min_x - other.max_x, 0.0)
        dy = max(other.min_y - self.max_y, self.min_y - other.max_y, 0.0)
        return float(np.hypot(dx, dy))

    def footprints_overlap(self, other: Box, tolerance: float = 0.0) -> bool:
        ox, oy, _ = self.overlap_depths(other)
        return ox > tolerance and oy > tolerance


@lru_cache(maxsize=1024)
def rotation_matrix(rx: float, ry: float, rz: float) -> NDArray[np.float64]:
    """Rotation matrix Rz · Ry · Rx for angles in degrees."""
    ax, ay, az = deg_to_rad(rx), deg_to_rad(ry), deg_to_rad(rz)
    cx, sx = np.cos(ax), np.sin(ax)
    cy, sy = np.cos(ay), np.sin(ay)
    cz, sz = np.cos(az), np.sin(az)

    rot_x = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    rot_y = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rot_z = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    m = rot_z @ rot_y @ rot_x
    # Snap float noise so 90° rotations give exact axis-aligned extents
    m[np.abs(m) < 1e-12] = 0.0
    m.setflags(write=False)
    return m


def _matrix_for(instance: PlacedInstance) -> NDArray[np.float64]:
    r = instance.rotation
    return rotation_matrix(float(r.x), float(r.y), float(r.z))


def part_size_ft(part: CatalogPart) -> tuple[float, float, float]:
    """Catalog dimensions converted to feet (width, depth, height)."""
    d = part.dimensions
    return (to_ft(d.width, d.unit), to_ft(d.depth, d.unit), to_ft(d.height, d.unit))


def instance_box(instance: PlacedInstance, part: CatalogPart) -> Box:
    """World-space bounding box of the rotated part extent."""
    w, d, h = part_size_ft(part)
    corners = np.array(
        [[x, y, z] for x in (0.0, w) for y in (0.0, d) for z in (0.0, h)]
    )
    world = corners @ _matrix_for(instance).T + np.array(instance.position.as_tuple())
    lo = world.min(axis=0)
    hi = world.max(axis=0)
    return Box(
        float(lo[0]), float(lo[1]), float(lo[2]),
        float(hi[0]), float(hi[1]), float(hi[2]),
    )


def connection_point_world(
    instance: PlacedInstance, part: CatalogPart, point: ConnectionPoint,
) -> NDArray[np.float64]:
    """World position of a connection point [ft].

    Connection point offsets share the part's dimension unit.
    """
    unit = part.dimensions.unit
    local = np.array([
        to_ft(point.position.x, unit),
        to_ft(point.position.y, unit),
        to_ft(point.position.z, unit),
    ])
    return _matrix_for(instance) @ local + np.array(instance.position.as_tuple())


def union_box(boxes: list[Box]) -> Box | None:
    if not boxes:
        return None
    return Box(
        min(b.min_x for b in boxes), min(b.min_y for b in boxes), min(b.min_z for b in boxes),
        max(b.max_x for b in boxes), max(b.max_y for b in boxes), max(b.max_z for b in boxes),
    )


def bounding_dimensions(boxes: list[Box]) -> BoundingDimensions:
    """Overall design extent, rounded to 0.1 ft."""
    box = union_box(boxes)
    if box is None:
        return BoundingDimensions()
    return BoundingDimensions(
        width=round(box.width, 1),
        depth=round(box.depth, 1),
        height=round(box.height, 1),
    )


def offset(vector: Vector3, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> Vector3:
    return Vector3(vector.x + dx, vector.y + dy, vector.z + dz)
