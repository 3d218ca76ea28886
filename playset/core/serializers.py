"""Serialization utilities — dataclass ↔ JSON-safe dict conversion.

Handles Enum fields, tuples/frozensets, the compatibility-rule union and
schema versioning. Used by the catalog feed loader, DesignRepository,
design file export and quote payloads.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any

from playset.constants import DEFAULT_DESIGN_NAME, DEFAULT_MATING, DESIGN_SCHEMA_VERSION
from playset.core.units import LENGTH_UNITS
from playset.models.catalog import (
    AgeRange,
    AnyRule,
    AttachmentKind,
    CatalogPart,
    ConnectionPoint,
    Dimensions,
    ExcludesRule,
    MaxCountRule,
    MinClearanceRule,
    PartMetadata,
    RecommendsRule,
    RequiresRule,
    RuleKind,
    Vector3,
)
from playset.models.design import (
    BoundingDimensions,
    Design,
    DesignMetadata,
    PlacedInstance,
)
from playset.models.pricing import (
    ComponentPricing,
    InstallationEstimate,
    PricingBreakdown,
    ShippingEstimate,
)
from playset.models.validation import ValidationResult


# =====================================================================
# Generic helpers
# =====================================================================


def _serialize_value(val: Any) -> Any:
    """Convert a value to a JSON-safe type."""
    if val is None:
        return None
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, AgeRange):
        return str(val)
    if dataclasses.is_dataclass(val) and not isinstance(val, type):
        return _dataclass_to_dict(val)
    if isinstance(val, frozenset):
        return sorted(_serialize_value(v) for v in val)
    if isinstance(val, (list, tuple)):
        return [_serialize_value(v) for v in val]
    if isinstance(val, dict):
        return {str(k): _serialize_value(v) for k, v in val.items()}
    if isinstance(val, (int, float, str, bool)):
        return val
    return str(val)


def _dataclass_to_dict(obj: Any) -> dict:
    """Recursively convert a dataclass to a JSON-safe dict."""
    result = {}
    for f in dataclasses.fields(obj):
        val = getattr(obj, f.name)
        result[f.name] = _serialize_value(val)
    return result


def _expect_dict(value: Any, field_name: str) -> dict:
    if not isinstance(value, dict):
        raise TypeError(f"{field_name} must be an object, got {type(value).__name__}")
    return value


def _dict_to_vector(data: dict | None) -> Vector3:
    data = _expect_dict(data or {}, "vector")
    return Vector3(
        x=float(data.get("x", 0.0)),
        y=float(data.get("y", 0.0)),
        z=float(data.get("z", 0.0)),
    )


def _parse_age_range(value: Any) -> AgeRange:
    if isinstance(value, AgeRange):
        return value
    if isinstance(value, dict):
        return AgeRange(int(value["min_age"]), int(value["max_age"]))
    if isinstance(value, (list, tuple)):
        return AgeRange(int(value[0]), int(value[1]))
    return AgeRange.parse(str(value))


# =====================================================================
# Catalog
# =====================================================================


_RULE_TYPES: dict[RuleKind, type] = {
    RuleKind.REQUIRES: RequiresRule,
    RuleKind.EXCLUDES: ExcludesRule,
    RuleKind.MAX_COUNT: MaxCountRule,
    RuleKind.MIN_CLEARANCE: MinClearanceRule,
    RuleKind.RECOMMENDS: RecommendsRule,
}


def rule_to_dict(rule: AnyRule) -> dict:
    """Serialize a compatibility rule, tagged with ``type``."""
    d = _dataclass_to_dict(rule)
    d["type"] = d.pop("kind")
    return d


def dict_to_rule(data: dict) -> AnyRule:
    """Deserialize a tagged compatibility rule.

    Raises:
        ValueError: If the ``type`` tag names no known rule kind.
    """
    data = dict(data)
    kind = RuleKind(data.pop("type"))
    message = str(data.get("message", ""))
    targets = tuple(data.get("targets", ()))

    if kind is RuleKind.REQUIRES:
        attachment = data.get("attachment")
        return RequiresRule(
            attachment=AttachmentKind(attachment) if attachment else None,
            targets=targets,
            message=message,
        )
    if kind is RuleKind.EXCLUDES:
        return ExcludesRule(targets=targets, message=message)
    if kind is RuleKind.MAX_COUNT:
        return MaxCountRule(
            category=str(data["category"]), limit=int(data["limit"]), message=message,
        )
    if kind is RuleKind.MIN_CLEARANCE:
        return MinClearanceRule(
            distance=float(data["distance"]), targets=targets, message=message,
        )
    if kind is RuleKind.RECOMMENDS:
        return RecommendsRule(targets=targets, message=message)
    raise ValueError(f"Unhandled rule kind: {kind!r}")


def _dict_to_connection_point(data: dict) -> ConnectionPoint:
    kind = AttachmentKind(data["kind"])
    if "mates_with" in data:
        mates = frozenset(AttachmentKind(k) for k in data["mates_with"])
    else:
        mates = frozenset(AttachmentKind(k) for k in DEFAULT_MATING[kind.value])
    return ConnectionPoint(
        id=str(data["id"]),
        position=_dict_to_vector(data.get("position")),
        kind=kind,
        mates_with=mates,
    )


def _dict_to_part_metadata(data: dict) -> PartMetadata:
    max_load = data.get("max_load_kg")
    max_capacity = data.get("max_capacity")
    return PartMetadata(
        age_range=_parse_age_range(data.get("age_range", "3-12")),
        capacity=int(data.get("capacity", 0)),
        tier=data.get("tier"),
        colors=tuple(data.get("colors", ())),
        materials=tuple(data.get("materials", ())),
        requires_ground_support=bool(data.get("requires_ground_support", False)),
        stackable_with=tuple(data.get("stackable_with", ())),
        max_load_kg=float(max_load) if max_load is not None else None,
        max_capacity=int(max_capacity) if max_capacity is not None else None,
    )


def catalog_part_to_dict(part: CatalogPart) -> dict:
    d = _dataclass_to_dict(part)
    d["rules"] = [rule_to_dict(r) for r in part.rules]
    return d


def dict_to_catalog_part(data: dict) -> CatalogPart:
    """Deserialize one catalog feed record.

    Raises:
        KeyError / ValueError: On a malformed record.
    """
    dims = _expect_dict(data.get("dimensions", {}), "dimensions")
    unit = str(dims.get("unit", "ft"))
    if unit not in LENGTH_UNITS:
        raise ValueError(f"Unknown length unit: {unit!r}")
    return CatalogPart(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        category=str(data.get("category", "")),
        subcategory=data.get("subcategory"),
        price=float(data.get("price", 0.0)),
        dimensions=Dimensions(
            width=float(dims.get("width", 0.0)),
            depth=float(dims.get("depth", 0.0)),
            height=float(dims.get("height", 0.0)),
            unit=unit,
        ),
        weight=float(data.get("weight", 0.0)),
        connection_points=tuple(
            _dict_to_connection_point(cp) for cp in data.get("connection_points", [])
        ),
        rules=tuple(dict_to_rule(r) for r in data.get("rules", [])),
        metadata=_dict_to_part_metadata(data.get("metadata", {})),
        model_ref=str(data.get("model_ref", "")),
        thumbnail=str(data.get("thumbnail", "")),
        published=bool(data.get("published", False)),
    )


# =====================================================================
# Design serialization
# =====================================================================


def instance_to_dict(instance: PlacedInstance) -> dict:
    return _dataclass_to_dict(instance)


def dict_to_instance(data: dict) -> PlacedInstance:
    data = _expect_dict(data, "instance")
    customizations = _expect_dict(data.get("customizations", {}), "customizations")
    return PlacedInstance(
        instance_id=str(data["instance_id"]),
        catalog_id=str(data["catalog_id"]),
        position=_dict_to_vector(data.get("position")),
        rotation=_dict_to_vector(data.get("rotation")),
        customizations={str(k): str(v) for k, v in customizations.items()},
    )


def design_to_dict(design: Design) -> dict:
    """Serialize a Design snapshot (instances in order + metadata).

    Returns:
        Dict with schema_version embedded.
    """
    d = _dataclass_to_dict(design)
    d["schema_version"] = DESIGN_SCHEMA_VERSION
    return d


def _dict_to_metadata(data: dict) -> DesignMetadata:
    dims = data.get("dimensions", {})
    return DesignMetadata(
        total_price=float(data.get("total_price", 0.0)),
        dimensions=BoundingDimensions(
            width=float(dims.get("width", 0.0)),
            depth=float(dims.get("depth", 0.0)),
            height=float(dims.get("height", 0.0)),
            unit=str(dims.get("unit", "ft")),
        ),
        estimated_weight=float(data.get("estimated_weight", 0.0)),
        age_range=_parse_age_range(data.get("age_range", "3-12")),
        capacity=int(data.get("capacity", 0)),
        instance_count=int(data.get("instance_count", 0)),
    )


def dict_to_design(data: dict) -> Design:
    """Deserialize a Design snapshot.

    Stored metadata is restored as-is; callers holding a catalog should
    recompute it (see ``playset.core.metadata.refresh_metadata``) rather
    than trust a client-supplied value.
    """
    data = dict(_expect_dict(data, "design"))
    data.pop("schema_version", None)
    instances = data.get("instances", [])
    if not isinstance(instances, list):
        raise TypeError("instances must be a list")
    return Design(
        id=data.get("id") or None,
        name=data.get("name") or DEFAULT_DESIGN_NAME,
        instances=[dict_to_instance(i) for i in instances],
        metadata=_dict_to_metadata(data.get("metadata", {})),
    )


# =====================================================================
# Pricing / validation serialization
# =====================================================================


def pricing_to_dict(breakdown: PricingBreakdown) -> dict:
    return _dataclass_to_dict(breakdown)


def dict_to_pricing(data: dict) -> PricingBreakdown:
    installation = data.get("installation")
    return PricingBreakdown(
        components=tuple(ComponentPricing(**c) for c in data.get("components", [])),
        subtotal=float(data.get("subtotal", 0.0)),
        shipping=ShippingEstimate(**data.get("shipping", {})),
        installation=InstallationEstimate(**installation) if installation else None,
        total=float(data.get("total", 0.0)),
    )


def validation_result_to_dict(result: ValidationResult) -> dict:
    d = _dataclass_to_dict(result)
    d["is_valid"] = result.is_valid
    return d
