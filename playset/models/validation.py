"""Validation result models.

Validation outcomes are data: errors block quote submission, warnings are
informational. Nothing in this module is ever raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


class RuleCategory(Enum):
    STRUCTURAL = "structural"
    SAFETY = "safety"
    COMPATIBILITY = "compatibility"


@dataclass(frozen=True)
class ValidationIssue:
    """Single rule violation.

    Attributes:
        id: Stable identifier — rule id plus the implicated instance ids,
            so re-running on the same design yields the same id.
        rule_id: Rule that produced the issue.
        message: Human-readable description.
        severity: ERROR blocks quote submission, WARNING does not.
        instance_ids: Implicated instances, in design order.
        suggestion: Optional remedy shown next to the message.
        category: Rule family.
    """
    id: str
    rule_id: str
    message: str
    severity: Severity
    instance_ids: tuple[str, ...] = ()
    suggestion: str = ""
    category: RuleCategory = RuleCategory.STRUCTURAL


@dataclass(frozen=True)
class ValidationResult:
    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def highlighted_instance_ids(self) -> frozenset[str]:
        """Instances implicated by at least one error."""
        return frozenset(iid for e in self.errors for iid in e.instance_ids)

    def has_rule(self, rule_id: str) -> bool:
        return any(i.rule_id == rule_id for i in (*self.errors, *self.warnings))

