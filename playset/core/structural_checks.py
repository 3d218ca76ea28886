"""Structural and safety rules — emptiness, connections, placement, loads."""

from __future__ import annotations

import itertools
from collections import deque

from playset.core.validation_engine import DesignContext, ValidationRule, make_issue
from playset.models.validation import RuleCategory, Severity, ValidationIssue

_S = RuleCategory.STRUCTURAL
_SAFETY = RuleCategory.SAFETY


def check_non_empty(ctx: DesignContext) -> list[ValidationIssue]:
    if ctx.design.instances:
        return []
    return [make_issue(
        "design-empty",
        "Design must have at least one part",
        Severity.ERROR, _S,
        suggestion="Start by adding a playdeck as the foundation",
    )]


def check_catalog_references(ctx: DesignContext) -> list[ValidationIssue]:
    resolved = {inst.instance_id for inst, _ in ctx.resolved}
    missing = [i.instance_id for i in ctx.design.instances if i.instance_id not in resolved]
    if not missing:
        return []
    return [make_issue(
        "catalog-missing",
        f"{len(missing)} part(s) are no longer available in the catalog",
        Severity.ERROR, RuleCategory.COMPATIBILITY, ctx.sort_ids(missing),
        suggestion="Remove or replace the unavailable parts",
    )]


def check_connection_compatibility(ctx: DesignContext) -> list[ValidationIssue]:
    """Adjoining connection points must accept each other's attachment kind."""
    issues = []
    reported: set[frozenset[str]] = set()
    for contact in ctx.contacts:
        pair = frozenset((contact.a, contact.b))
        if contact.compatible or pair in reported:
            continue
        reported.add(pair)
        ids = ctx.sort_ids(pair)
        issues.append(make_issue(
            "compatibility-connection-points",
            f"Incompatible connection: {contact.a_point.kind.value} "
            f"cannot attach to {contact.b_point.kind.value}",
            Severity.ERROR, RuleCategory.COMPATIBILITY, ids,
            suggestion="Connect components through compatible connection points",
        ))
    return issues


def _stackable(ctx: DesignContext, a_id: str, b_id: str) -> bool:
    a = ctx.part_of(a_id)
    b = ctx.part_of(b_id)
    return (
        b.matches_any(a.metadata.stackable_with)
        or a.matches_any(b.metadata.stackable_with)
    )


def check_overlaps(ctx: DesignContext) -> list[ValidationIssue]:
    tol = ctx.limits.overlap_tolerance_ft
    issues = []
    for (a, _), (b, _) in itertools.combinations(ctx.resolved, 2):
        depths = ctx.boxes[a.instance_id].overlap_depths(ctx.boxes[b.instance_id])
        if min(depths) <= tol:
            continue
        if _stackable(ctx, a.instance_id, b.instance_id):
            continue
        issues.append(make_issue(
            "structural-overlap",
            "Two parts occupy the same space",
            Severity.ERROR, _S, ctx.sort_ids((a.instance_id, b.instance_id)),
            suggestion="Move one of the parts apart",
        ))
    return issues


def check_ground_support(ctx: DesignContext) -> list[ValidationIssue]:
    """Parts requiring support sit on the ground or on top of another part."""
    tol = ctx.limits.ground_tolerance_ft
    issues = []
    below = [
        inst.instance_id for inst, _ in ctx.resolved
        if ctx.boxes[inst.instance_id].min_z < -tol
    ]
    if below:
        issues.append(make_issue(
            "structural-below-ground",
            f"{len(below)} part(s) extend below ground level",
            Severity.ERROR, _S, ctx.sort_ids(below),
            suggestion="Raise the parts to ground level",
        ))

    for inst, part in ctx.resolved:
        if not part.metadata.requires_ground_support:
            continue
        box = ctx.boxes[inst.instance_id]
        if abs(box.min_z) <= tol:
            continue
        supported = any(
            other.instance_id != inst.instance_id
            and abs(ctx.boxes[other.instance_id].max_z - box.min_z) <= tol
            and ctx.boxes[other.instance_id].footprints_overlap(box, tol)
            for other, _ in ctx.resolved
        )
        if not supported:
            issues.append(make_issue(
                "structural-support-required",
                f"{part.name or part.id} needs ground support",
                Severity.ERROR, _S, (inst.instance_id,),
                suggestion="Place it on the ground or directly on top of a supporting part",
            ))
    return issues


def check_height_limit(ctx: DesignContext) -> list[ValidationIssue]:
    limit = ctx.limits.max_height_ft
    too_high = [
        inst.instance_id for inst, _ in ctx.resolved
        if ctx.boxes[inst.instance_id].max_z > limit
    ]
    if not too_high:
        return []
    return [make_issue(
        "structural-height-limit",
        f"{len(too_high)} part(s) exceed the maximum height of {limit:g} feet",
        Severity.ERROR, _S, ctx.sort_ids(too_high),
        suggestion=f"Lower parts to stay within the {limit:g} foot height limit",
    )]


def check_load_limits(ctx: DesignContext) -> list[ValidationIssue]:
    """Aggregate weight and capacity against declared maximums."""
    issues = []
    total_weight = sum(part.weight for _, part in ctx.resolved)
    total_capacity = sum(part.metadata.capacity for _, part in ctx.resolved)
    all_ids = ctx.sort_ids(inst.instance_id for inst, _ in ctx.resolved)

    if total_weight > ctx.limits.max_total_weight_kg:
        issues.append(make_issue(
            "structural-weight-limit",
            f"Total structure weight ({total_weight:g} kg) exceeds the maximum of "
            f"{ctx.limits.max_total_weight_kg:g} kg",
            Severity.ERROR, _S, all_ids,
            suggestion="Remove parts or choose lighter alternatives",
        ))

    anchors = [(i, p) for i, p in ctx.resolved if p.metadata.max_load_kg is not None]
    if anchors:
        rating = sum(p.metadata.max_load_kg for _, p in anchors)
        if total_weight > rating:
            issues.append(make_issue(
                "structural-anchor-load",
                f"Total structure weight ({total_weight:g} kg) exceeds the anchor "
                f"rating of {rating:g} kg",
                Severity.ERROR, _S, ctx.sort_ids(i.instance_id for i, _ in anchors),
                suggestion="Add ground anchors or reduce the structure weight",
            ))

    capped = [(i, p) for i, p in ctx.resolved if p.metadata.max_capacity is not None]
    if capped:
        cap = min(p.metadata.max_capacity for _, p in capped)
        if total_capacity > cap:
            issues.append(make_issue(
                "safety-capacity-limit",
                f"Structure capacity ({total_capacity}) exceeds the safe maximum of {cap}",
                Severity.ERROR, _SAFETY, ctx.sort_ids(i.instance_id for i, _ in capped),
                suggestion="Remove play features or add supporting structure",
            ))
    return issues


def check_deck_access(ctx: DesignContext) -> list[ValidationIssue]:
    """Elevated decks must be joined to an access part (ladder, stairs, wall)."""
    neighbours = ctx.neighbours()
    without_access = []
    for inst, part in ctx.resolved:
        if part.category != ctx.limits.deck_category:
            continue
        if ctx.boxes[inst.instance_id].min_z < ctx.limits.min_elevated_deck_ft:
            continue
        has_access = any(
            ctx.part_of(n).category == ctx.limits.access_category
            for n in neighbours[inst.instance_id]
        )
        if not has_access:
            without_access.append(inst.instance_id)
    if not without_access:
        return []
    return [make_issue(
        "structural-deck-access",
        f"{len(without_access)} elevated deck(s) have no access point",
        Severity.ERROR, _S, ctx.sort_ids(without_access),
        suggestion="Add a ladder, stairs, or climbing wall to each elevated deck",
    )]


def check_disconnected(ctx: DesignContext) -> list[ValidationIssue]:
    if len(ctx.resolved) < 2:
        return []
    graph = ctx.neighbours()
    start = ctx.resolved[0][0].instance_id
    seen = {start}
    queue = deque([start])
    while queue:
        for n in graph[queue.popleft()]:
            if n not in seen:
                seen.add(n)
                queue.append(n)
    loose = [inst.instance_id for inst, _ in ctx.resolved if inst.instance_id not in seen]
    if not loose:
        return []
    return [make_issue(
        "structural-disconnected",
        f"{len(loose)} part(s) are not connected to the main structure",
        Severity.WARNING, _S, ctx.sort_ids(loose),
        suggestion="Join parts through their connection points",
    )]


STRUCTURAL_RULES = (
    ValidationRule("design-empty", "Non-empty Design", _S, check_non_empty),
    ValidationRule("catalog-missing", "Catalog References", RuleCategory.COMPATIBILITY,
                   check_catalog_references),
    ValidationRule("compatibility-connection-points", "Connection Point Matching",
                   RuleCategory.COMPATIBILITY, check_connection_compatibility),
    ValidationRule("structural-overlap", "No Overlapping Parts", _S, check_overlaps),
    ValidationRule("structural-support-required", "Ground Support", _S, check_ground_support),
    ValidationRule("structural-height-limit", "Height Restriction", _S, check_height_limit),
    ValidationRule("structural-weight-limit", "Load Limits", _S, check_load_limits),
    ValidationRule("structural-deck-access", "Deck Access Required", _S, check_deck_access),
    ValidationRule("structural-disconnected", "All Parts Connected", _S, check_disconnected),
)
