"""Persistence adapter interface.

The engine depends only on this interface; the store behind it is injected.
Every method raises ``PersistenceError`` on failure, including unknown ids
and ids owned by someone else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from playset.models.design import Design, DesignSummary


class PersistenceAdapter(ABC):
    """Owner-scoped design store."""

    @abstractmethod
    def save(self, design: Design, owner_id: str) -> str:
        """Store *design*; insert when ``design.id`` is None, else update.

        Returns:
            The design id.
        """

    @abstractmethod
    def load(self, design_id: str, owner_id: str) -> Design:
        """Return the stored design snapshot."""

    @abstractmethod
    def list_designs(self, owner_id: str) -> list[DesignSummary]:
        """Summaries of the owner's designs, most recently updated first."""

    @abstractmethod
    def delete(self, design_id: str, owner_id: str) -> None:
        ...

    @abstractmethod
    def duplicate(self, design_id: str, owner_id: str) -> str:
        """Copy a stored design under a new id; the copy's name gets " (Copy)"."""
