"""Compatibility rules — declarative per-part rules plus design-wide advisories.

Each catalog part carries a tuple of tagged rule variants. ``evaluate_rule``
dispatches over the closed set in ``playset.models.catalog.AnyRule``; a
variant it does not know is a programming error and raises ``TypeError``.
"""

from __future__ import annotations

from playset.core.validation_engine import DesignContext, ValidationRule, make_issue
from playset.models.catalog import (
    AnyRule,
    CatalogPart,
    ExcludesRule,
    MaxCountRule,
    MinClearanceRule,
    RecommendsRule,
    RequiresRule,
)
from playset.models.design import PlacedInstance
from playset.models.validation import RuleCategory, Severity, ValidationIssue

_C = RuleCategory.COMPATIBILITY


def _others(ctx: DesignContext, inst: PlacedInstance):
    return [(o, p) for o, p in ctx.resolved if o.instance_id != inst.instance_id]


def _requires(
    ctx: DesignContext, inst: PlacedInstance, part: CatalogPart, rule: RequiresRule, key: str,
) -> list[ValidationIssue]:
    if rule.attachment is None and not rule.targets:
        return []
    accepts = rule.attachment is not None and any(
        rule.attachment in cp.mates_with for cp in part.connection_points
    )
    for _, other in _others(ctx, inst):
        if accepts and any(
            cp.kind is rule.attachment for cp in other.connection_points
        ):
            return []
        if other.matches_any(rule.targets):
            return []
    wanted = rule.attachment.value if rule.attachment else ", ".join(rule.targets)
    return [make_issue(
        "rule-requires",
        rule.message or f"{part.name or part.id} requires a compatible {wanted}",
        Severity.ERROR, _C, (inst.instance_id,),
        suggestion=f"Add a part providing {wanted}",
        key=key,
    )]


def _excludes(
    ctx: DesignContext, inst: PlacedInstance, part: CatalogPart, rule: ExcludesRule, key: str,
) -> list[ValidationIssue]:
    offenders = [o.instance_id for o, p in _others(ctx, inst) if p.matches_any(rule.targets)]
    if not offenders:
        return []
    return [make_issue(
        "rule-excludes",
        rule.message or f"{part.name or part.id} cannot be combined with "
                        f"{', '.join(rule.targets)}",
        Severity.ERROR, _C, ctx.sort_ids([inst.instance_id, *offenders]),
        suggestion="Remove one of the conflicting parts",
        key=key,
    )]


def _max_count(
    ctx: DesignContext, inst: PlacedInstance, part: CatalogPart, rule: MaxCountRule, key: str,
) -> list[ValidationIssue]:
    members = [o.instance_id for o, p in ctx.resolved if p.category == rule.category]
    if len(members) <= rule.limit:
        return []
    return [make_issue(
        "rule-maxCount",
        rule.message or f"At most {rule.limit} {rule.category} part(s) allowed "
                        f"({len(members)} placed)",
        Severity.ERROR, _C, ctx.sort_ids(members),
        suggestion=f"Remove {len(members) - rule.limit} {rule.category} part(s)",
        # Same category/limit from several parts is one violation
        key=f"{rule.category}:{rule.limit}",
    )]


def _min_clearance(
    ctx: DesignContext, inst: PlacedInstance, part: CatalogPart, rule: MinClearanceRule, key: str,
) -> list[ValidationIssue]:
    joined = ctx.joined_pairs()
    box = ctx.boxes[inst.instance_id]
    intruders = []
    for other, other_part in _others(ctx, inst):
        if rule.targets and not other_part.matches_any(rule.targets):
            continue
        if frozenset((inst.instance_id, other.instance_id)) in joined:
            continue
        if box.horizontal_gap(ctx.boxes[other.instance_id]) < rule.distance:
            intruders.append(other.instance_id)
    if not intruders:
        return []
    return [make_issue(
        "rule-minClearance",
        rule.message or f"{part.name or part.id} needs {rule.distance:g} ft of clearance",
        Severity.ERROR, RuleCategory.SAFETY, ctx.sort_ids([inst.instance_id, *intruders]),
        suggestion="Increase spacing around the part",
        key=key,
    )]


def _recommends(
    ctx: DesignContext, inst: PlacedInstance, part: CatalogPart, rule: RecommendsRule, key: str,
) -> list[ValidationIssue]:
    if any(p.matches_any(rule.targets) for _, p in _others(ctx, inst)):
        return []
    return [make_issue(
        "rule-recommends",
        rule.message or f"Consider adding {', '.join(rule.targets)} "
                        f"to go with {part.name or part.id}",
        Severity.WARNING, _C, (inst.instance_id,),
        key=key,
    )]


def evaluate_rule(
    ctx: DesignContext, inst: PlacedInstance, part: CatalogPart, rule: AnyRule, key: str,
) -> list[ValidationIssue]:
    """Evaluate one declarative rule of *part* placed as *inst*."""
    if isinstance(rule, RequiresRule):
        return _requires(ctx, inst, part, rule, key)
    if isinstance(rule, ExcludesRule):
        return _excludes(ctx, inst, part, rule, key)
    if isinstance(rule, MaxCountRule):
        return _max_count(ctx, inst, part, rule, key)
    if isinstance(rule, MinClearanceRule):
        return _min_clearance(ctx, inst, part, rule, key)
    if isinstance(rule, RecommendsRule):
        return _recommends(ctx, inst, part, rule, key)
    raise TypeError(f"Unhandled compatibility rule: {type(rule).__name__}")


def check_declarative_rules(ctx: DesignContext) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for inst, part in ctx.resolved:
        for index, rule in enumerate(part.rules):
            key = f"{inst.instance_id}:{index}"
            for issue in evaluate_rule(ctx, inst, part, rule, key):
                if issue.id not in seen:
                    seen.add(issue.id)
                    issues.append(issue)
    return issues


def check_tier_mix(ctx: DesignContext) -> list[ValidationIssue]:
    tiers = sorted({p.metadata.tier for _, p in ctx.resolved if p.metadata.tier})
    if len(tiers) <= 1:
        return []
    ids = ctx.sort_ids(i.instance_id for i, p in ctx.resolved if p.metadata.tier)
    return [make_issue(
        "compatibility-material-tier",
        f"Design mixes components from {len(tiers)} product tiers: {', '.join(tiers)}",
        Severity.WARNING, _C, ids,
        suggestion="Use components from the same tier for consistent quality",
    )]


def check_color_count(ctx: DesignContext) -> list[ValidationIssue]:
    if len(ctx.resolved) < 2:
        return []
    colors: set[str] = set()
    for inst, part in ctx.resolved:
        override = inst.customizations.get("color")
        colors.update([override] if override else part.metadata.colors)
    if len(colors) <= ctx.limits.max_distinct_colors:
        return []
    return [make_issue(
        "compatibility-color-coordination",
        f"Design uses {len(colors)} different colors, which may look busy",
        Severity.WARNING, _C, ctx.sort_ids(i.instance_id for i, _ in ctx.resolved),
        suggestion="Limit the design to 2-3 coordinating colors",
    )]


def check_age_ranges(ctx: DesignContext) -> list[ValidationIssue]:
    if len(ctx.resolved) < 2:
        return []
    min_age = max(p.metadata.age_range.min_age for _, p in ctx.resolved)
    max_age = min(p.metadata.age_range.max_age for _, p in ctx.resolved)
    if min_age <= max_age:
        return []
    return [make_issue(
        "safety-age-range",
        "Parts are designed for age ranges that do not overlap",
        Severity.WARNING, RuleCategory.SAFETY,
        ctx.sort_ids(i.instance_id for i, _ in ctx.resolved),
        suggestion="Choose parts suited to the same age group",
    )]


COMPATIBILITY_RULES = (
    ValidationRule("compatibility-rules", "Compatibility Rules Enforcement", _C,
                   check_declarative_rules),
    ValidationRule("compatibility-material-tier", "Material Compatibility", _C, check_tier_mix),
    ValidationRule("compatibility-color-coordination", "Color Coordination", _C,
                   check_color_count),
    ValidationRule("safety-age-range", "Age-Appropriate Design", RuleCategory.SAFETY,
                   check_age_ranges),
)
