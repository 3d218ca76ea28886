"""Engine exception taxonomy.

Validation outcomes are never raised (see ``playset.models.validation``).
Mutation failures are raised before any state change.
"""

from __future__ import annotations


class PlaysetError(Exception):
    """Base class for engine errors."""


class CatalogMiss(PlaysetError, KeyError):
    """A catalog id is missing or unpublished."""

    def __init__(self, catalog_id: str, unpublished: bool = False):
        self.catalog_id = catalog_id
        self.unpublished = unpublished
        reason = "unpublished" if unpublished else "not found"
        super().__init__(f"Catalog part {catalog_id!r} {reason}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class InstanceNotFound(PlaysetError, KeyError):
    """A mutation references an instance id absent from the design."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Instance not found: {instance_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class PersistenceError(PlaysetError):
    """Save/load/list/duplicate/delete failed in the persistence adapter."""


class PricingInconsistency(PlaysetError):
    """A computed breakdown disagrees with its own lines or the design."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class QuoteBlocked(PlaysetError):
    """Quote submission attempted while the design has validation errors."""


class QuoteRejected(PlaysetError):
    """Quote intake refused a submission."""

    def __init__(self, reasons: list[str], code: str = "VALIDATION_ERROR"):
        self.reasons = list(reasons)
        self.code = code
        super().__init__(f"{code}: " + "; ".join(self.reasons))
