"""Validation engine — decides whether a design is buildable.

``ValidationEngine.validate`` is a pure function of (Design, Catalog,
limits): it never mutates its inputs and yields identical results for
identical inputs, so the same check can be re-run at the quote intake
boundary on a client-submitted snapshot.

Rules are registered in a ``ValidationRuleRegistry``; each rule's check
receives a ``DesignContext`` (resolved parts, world boxes, connection
contacts) computed once per pass.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np

from playset.core.catalog_repository import CatalogRepository
from playset.core.geometry import Box, connection_point_world, instance_box
from playset.core.metadata import resolve_instances
from playset.models.catalog import CatalogPart, ConnectionPoint
from playset.models.config import ValidationLimits
from playset.models.design import Design, PlacedInstance
from playset.models.validation import (
    RuleCategory,
    Severity,
    ValidationIssue,
    ValidationResult,
)


# ---------------------------------------------------------------------------
# Per-pass context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Contact:
    """Two connection points of different instances within tolerance."""
    a: str
    a_point: ConnectionPoint
    b: str
    b_point: ConnectionPoint

    @property
    def compatible(self) -> bool:
        return self.a_point.accepts(self.b_point) and self.b_point.accepts(self.a_point)


@dataclass
class DesignContext:
    """Everything a rule check needs, derived once from a design snapshot."""
    design: Design
    catalog: CatalogRepository
    limits: ValidationLimits
    resolved: list[tuple[PlacedInstance, CatalogPart]] = field(default_factory=list)
    boxes: dict[str, Box] = field(default_factory=dict)
    order: dict[str, int] = field(default_factory=dict)
    contacts: list[Contact] = field(default_factory=list)

    @classmethod
    def build(
        cls, design: Design, catalog: CatalogRepository, limits: ValidationLimits,
    ) -> DesignContext:
        ctx = cls(design=design, catalog=catalog, limits=limits)
        ctx.order = {inst.instance_id: i for i, inst in enumerate(design.instances)}
        ctx.resolved = resolve_instances(design.instances, catalog)
        ctx.boxes = {inst.instance_id: instance_box(inst, part) for inst, part in ctx.resolved}
        ctx.contacts = _find_contacts(ctx.resolved, limits.connection_tolerance_ft)
        return ctx

    def part_of(self, instance_id: str) -> CatalogPart | None:
        for inst, part in self.resolved:
            if inst.instance_id == instance_id:
                return part
        return None

    def sort_ids(self, ids) -> tuple[str, ...]:
        """Deduplicate and order instance ids by their position in the design."""
        return tuple(sorted(set(ids), key=lambda iid: self.order.get(iid, len(self.order))))

    def joined_pairs(self) -> set[frozenset[str]]:
        """Instance pairs linked through a compatible contact."""
        return {frozenset((c.a, c.b)) for c in self.contacts if c.compatible}

    def neighbours(self) -> dict[str, set[str]]:
        graph: dict[str, set[str]] = {inst.instance_id: set() for inst, _ in self.resolved}
        for pair in self.joined_pairs():
            a, b = tuple(pair)
            graph[a].add(b)
            graph[b].add(a)
        return graph


def _find_contacts(
    resolved: list[tuple[PlacedInstance, CatalogPart]], tolerance: float,
) -> list[Contact]:
    points = []
    for inst, part in resolved:
        if not part.connection_points:
            points.append((inst, part, np.empty((0, 3))))
            continue
        world = np.array([
            connection_point_world(inst, part, cp) for cp in part.connection_points
        ])
        points.append((inst, part, world))

    contacts = []
    for (a, a_part, a_world), (b, b_part, b_world) in itertools.combinations(points, 2):
        if not len(a_world) or not len(b_world):
            continue
        # Pairwise distances between every point of a and every point of b
        dist = np.linalg.norm(a_world[:, None, :] - b_world[None, :, :], axis=2)
        for i, j in zip(*np.nonzero(dist <= tolerance)):
            contacts.append(Contact(
                a=a.instance_id, a_point=a_part.connection_points[int(i)],
                b=b.instance_id, b_point=b_part.connection_points[int(j)],
            ))
    return contacts


def make_issue(
    rule_id: str,
    message: str,
    severity: Severity,
    category: RuleCategory,
    instance_ids: tuple[str, ...] = (),
    suggestion: str = "",
    key: str = "",
) -> ValidationIssue:
    """Build an issue whose id is stable across identical passes."""
    suffix = key or "+".join(instance_ids)
    return ValidationIssue(
        id=f"{rule_id}:{suffix}" if suffix else rule_id,
        rule_id=rule_id,
        message=message,
        severity=severity,
        instance_ids=instance_ids,
        suggestion=suggestion,
        category=category,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

RuleCheck = Callable[[DesignContext], list[ValidationIssue]]


@dataclass
class ValidationRule:
    """A registered check.

    The check returns the issues it finds; each issue carries its own
    severity, so one rule may report both errors and warnings.
    """
    id: str
    name: str
    category: RuleCategory
    check: RuleCheck
    enabled: bool = True


class ValidationRuleRegistry:
    """Ordered collection of validation rules."""

    def __init__(self) -> None:
        self._rules: dict[str, ValidationRule] = {}

    def register(self, rule: ValidationRule) -> None:
        self._rules[rule.id] = rule

    def get(self, rule_id: str) -> ValidationRule | None:
        return self._rules.get(rule_id)

    def rules(self, category: RuleCategory | None = None) -> list[ValidationRule]:
        """Enabled rules in registration order, optionally by category."""
        return [
            r for r in self._rules.values()
            if r.enabled and (category is None or r.category == category)
        ]

    def set_enabled(self, rule_id: str, enabled: bool) -> None:
        rule = self._rules.get(rule_id)
        if rule is not None:
            rule.enabled = enabled


def default_registry() -> ValidationRuleRegistry:
    """Registry holding every built-in structural, safety and compatibility rule."""
    from playset.core.compatibility_checks import COMPATIBILITY_RULES
    from playset.core.structural_checks import STRUCTURAL_RULES

    registry = ValidationRuleRegistry()
    for rule in (*STRUCTURAL_RULES, *COMPATIBILITY_RULES):
        registry.register(rule)
    return registry


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ValidationEngine:
    """Evaluates registered rules against design snapshots.

    Args:
        catalog: Catalog used to resolve part data.
        limits: Structural limits and tolerances.
        registry: Rule registry; defaults to every built-in rule.
    """

    def __init__(
        self,
        catalog: CatalogRepository,
        limits: ValidationLimits | None = None,
        registry: ValidationRuleRegistry | None = None,
    ) -> None:
        self._catalog = catalog
        self._limits = limits or ValidationLimits()
        self._registry = registry or default_registry()

    @property
    def registry(self) -> ValidationRuleRegistry:
        return self._registry

    @property
    def limits(self) -> ValidationLimits:
        return self._limits

    def validate(self, design: Design) -> ValidationResult:
        """Run every enabled rule and split the issues by severity."""
        return self._run(design, self._registry.rules())

    def validate_category(self, design: Design, category: RuleCategory) -> ValidationResult:
        return self._run(design, self._registry.rules(category))

    def _run(self, design: Design, rules: list[ValidationRule]) -> ValidationResult:
        ctx = DesignContext.build(design, self._catalog, self._limits)
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []
        for rule in rules:
            for issue in rule.check(ctx):
                if issue.severity is Severity.ERROR:
                    errors.append(issue)
                else:
                    warnings.append(issue)
        return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))
