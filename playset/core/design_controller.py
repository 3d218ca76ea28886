"""Design controller — central mediator between the design model and views.

Owns the single working Design. All mutations go through this controller,
which applies a reversible command, recomputes derived metadata, re-runs
validation and pricing, and emits Qt signals for the 3D view and panels.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from PyQt6.QtCore import QObject, pyqtSignal

from playset.constants import CUSTOMIZATION_KEYS, DEFAULT_DESIGN_NAME, DUPLICATE_OFFSET_FT
from playset.core.catalog_repository import CatalogRepository
from playset.core.commands import (
    AddPart,
    ClearDesign,
    DesignCommand,
    MovePart,
    RemovePart,
    RenameDesign,
    RotatePart,
    SetCustomization,
)
from playset.core.exceptions import InstanceNotFound
from playset.core.geometry import Box, instance_box, offset, part_size_ft
from playset.core.metadata import refresh_metadata
from playset.core.pricing_engine import pricing_breakdown
from playset.core.undo_manager import UndoManager
from playset.core.validation_engine import ValidationEngine
from playset.models.catalog import Vector3
from playset.models.config import PricingRates, ValidationLimits
from playset.models.design import Design, PlacedInstance
from playset.models.pricing import LocationInfo, PricingBreakdown
from playset.models.validation import ValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderItem:
    """What the visualization layer needs to draw one instance.

    ``model_ref`` is empty and ``bounds`` None when the catalog part no
    longer resolves.
    """
    instance_id: str
    catalog_id: str
    model_ref: str
    position: Vector3
    rotation: Vector3
    dimensions: tuple[float, float, float]
    bounds: Box | None
    highlighted: bool
    customizations: dict[str, str] = field(default_factory=dict)


def _as_vector(value) -> Vector3:
    if value is None:
        return Vector3()
    if isinstance(value, Vector3):
        return value
    x, y, z = value
    return Vector3(float(x), float(y), float(z))


def _new_instance_id() -> str:
    return str(uuid.uuid4())


class DesignController(QObject):
    """Mutation API and session state for one working design.

    Args:
        catalog: Catalog used to resolve every instance.
        limits: Validation limits; defaults from ``playset.constants``.
        rates: Pricing rates; defaults from ``playset.constants``.
        id_factory: Produces new instance ids.
    """

    # Full refresh (undo/redo, load, clear)
    design_changed = pyqtSignal()
    instance_added = pyqtSignal(str)
    instance_removed = pyqtSignal(str)
    # Position, rotation or customization of one instance
    instance_changed = pyqtSignal(str)
    validation_changed = pyqtSignal(object)  # ValidationResult
    pricing_changed = pyqtSignal(object)  # PricingBreakdown
    undo_state_changed = pyqtSignal()
    dirty_changed = pyqtSignal(bool)

    def __init__(
        self,
        catalog: CatalogRepository,
        limits: ValidationLimits | None = None,
        rates: PricingRates | None = None,
        id_factory: Callable[[], str] = _new_instance_id,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._catalog = catalog
        self._rates = rates or PricingRates()
        self._validator = ValidationEngine(catalog, limits)
        self._new_id = id_factory
        self._undo_manager = UndoManager()
        self._design = Design()
        self._location: LocationInfo | None = None
        self._include_installation = False
        # Content version; dirty while it differs from the last saved one
        self._version = 0
        self._saved_version = 0
        self._session = 0
        self._validation = ValidationResult()
        self._pricing = PricingBreakdown()
        self._recompute()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def design(self) -> Design:
        """Current design (read-only reference)."""
        return self._design

    @property
    def catalog(self) -> CatalogRepository:
        return self._catalog

    @property
    def validation(self) -> ValidationResult:
        return self._validation

    @property
    def pricing(self) -> PricingBreakdown:
        return self._pricing

    @property
    def rates(self) -> PricingRates:
        return self._rates

    @property
    def location(self) -> LocationInfo | None:
        return self._location

    @property
    def include_installation(self) -> bool:
        return self._include_installation

    @property
    def highlighted_instance_ids(self) -> frozenset[str]:
        return self._validation.highlighted_instance_ids

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_dirty(self) -> bool:
        return self._version != self._saved_version

    def snapshot(self) -> Design:
        """Deep copy of the current design, safe to hand to another thread."""
        return copy.deepcopy(self._design)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_part(self, catalog_id: str, position=None, rotation=None) -> str:
        """Place a catalog part and return the new instance id.

        Raises:
            CatalogMiss: If *catalog_id* is unknown or unpublished.
        """
        self._catalog.get(catalog_id)
        instance = PlacedInstance(
            instance_id=self._new_id(),
            catalog_id=catalog_id,
            position=_as_vector(position),
            rotation=_as_vector(rotation),
        )
        self._execute(AddPart(instance))
        self.instance_added.emit(instance.instance_id)
        return instance.instance_id

    def duplicate_part(self, instance_id: str) -> str:
        """Copy an instance, offset in x and y; returns the new instance id."""
        source = self._instance(instance_id)
        self._catalog.get(source.catalog_id)
        instance = PlacedInstance(
            instance_id=self._new_id(),
            catalog_id=source.catalog_id,
            position=offset(source.position, DUPLICATE_OFFSET_FT, DUPLICATE_OFFSET_FT),
            rotation=source.rotation,
            customizations=dict(source.customizations),
        )
        self._execute(AddPart(instance))
        self.instance_added.emit(instance.instance_id)
        return instance.instance_id

    def move_part(self, instance_id: str, new_position) -> None:
        inst = self._instance(instance_id)
        self._catalog.get(inst.catalog_id)
        self._execute(MovePart(instance_id, inst.position, _as_vector(new_position)))
        self.instance_changed.emit(instance_id)

    def rotate_part(self, instance_id: str, new_rotation) -> None:
        """Set the rotation (degrees about x, y, z) of an instance."""
        inst = self._instance(instance_id)
        self._catalog.get(inst.catalog_id)
        self._execute(RotatePart(instance_id, inst.rotation, _as_vector(new_rotation)))
        self.instance_changed.emit(instance_id)

    def remove_part(self, instance_id: str) -> None:
        """Remove an instance.

        Unlike other mutations this does not require the part to resolve,
        so parts dropped from the catalog can still be removed.
        """
        self._instance(instance_id)
        self._execute(RemovePart(instance_id))
        self.instance_removed.emit(instance_id)

    def set_customization(self, instance_id: str, key: str, value: str | None) -> None:
        """Set an override (``color``, ``label``, ``material``); None removes it.

        Raises:
            ValueError: If *key* is not an override key.
        """
        if key not in CUSTOMIZATION_KEYS:
            raise ValueError(
                f"Unknown customization key {key!r}; expected one of {CUSTOMIZATION_KEYS}"
            )
        inst = self._instance(instance_id)
        self._catalog.get(inst.catalog_id)
        old = inst.customizations.get(key)
        self._execute(SetCustomization(instance_id, key, old, value))
        self.instance_changed.emit(instance_id)

    def clear(self) -> None:
        """Remove every instance (undoable). A no-op on an empty design."""
        if not self._design.instances:
            return
        self._execute(ClearDesign())
        self.design_changed.emit()

    def rename(self, name: str) -> None:
        name = name.strip()
        if not name:
            raise ValueError("Design name must not be empty")
        self._execute(RenameDesign(self._design.name, name))
        self.design_changed.emit()

    # ------------------------------------------------------------------
    # Whole-design replacement
    # ------------------------------------------------------------------

    def load_design(self, design: Design) -> None:
        """Replace the working design (e.g. after a load). Resets history."""
        self._design = copy.deepcopy(design)
        logger.debug(
            "Loaded design %s (%d instances)", design.id, len(design.instances),
        )
        self._reset_session()

    def new_design(self, name: str = DEFAULT_DESIGN_NAME) -> None:
        self._design = Design(name=name)
        self._reset_session()

    def _reset_session(self) -> None:
        self._session += 1
        refresh_metadata(self._design, self._catalog)
        self._undo_manager.clear()
        self._version += 1
        self._saved_version = self._version
        self._recompute()
        self.design_changed.emit()
        self.undo_state_changed.emit()
        self.dirty_changed.emit(False)

    # ------------------------------------------------------------------
    # Undo / Redo
    # ------------------------------------------------------------------

    @property
    def can_undo(self) -> bool:
        return self._undo_manager.can_undo

    @property
    def can_redo(self) -> bool:
        return self._undo_manager.can_redo

    @property
    def undo_manager(self) -> UndoManager:
        return self._undo_manager

    def undo(self) -> bool:
        """Revert the newest command. Returns False when there is none."""
        command = self._undo_manager.undo()
        if command is None:
            return False
        command.revert(self._design)
        self._after_history_step()
        return True

    def redo(self) -> bool:
        """Re-apply the newest undone command. Returns False when there is none."""
        command = self._undo_manager.redo()
        if command is None:
            return False
        command.apply(self._design)
        self._after_history_step()
        return True

    def _after_history_step(self) -> None:
        refresh_metadata(self._design, self._catalog)
        self._bump_version()
        self._recompute()
        self.design_changed.emit()
        self.undo_state_changed.emit()

    # ------------------------------------------------------------------
    # Pricing context (not part of the design history)
    # ------------------------------------------------------------------

    def set_location(self, location: LocationInfo | None) -> None:
        self._location = location
        self._reprice()

    def set_include_installation(self, include: bool) -> None:
        self._include_installation = include
        self._reprice()

    # ------------------------------------------------------------------
    # Persistence bookkeeping
    # ------------------------------------------------------------------

    @property
    def session(self) -> int:
        """Incremented whenever the working design is replaced."""
        return self._session

    def assign_id(self, design_id: str) -> None:
        """Adopt the id the store gave this design on its first save."""
        self._design.id = design_id

    def mark_saved(self, version: int) -> None:
        """Record that the snapshot taken at *version* has been stored."""
        self._saved_version = version
        self.dirty_changed.emit(self.is_dirty)

    # ------------------------------------------------------------------
    # Visualization
    # ------------------------------------------------------------------

    def render_items(self) -> list[RenderItem]:
        """One RenderItem per instance, in design order."""
        highlighted = self.highlighted_instance_ids
        items = []
        for inst in self._design.instances:
            part = self._catalog.find(inst.catalog_id)
            items.append(RenderItem(
                instance_id=inst.instance_id,
                catalog_id=inst.catalog_id,
                model_ref=part.model_ref if part else "",
                position=inst.position,
                rotation=inst.rotation,
                dimensions=part_size_ft(part) if part else (0.0, 0.0, 0.0),
                bounds=instance_box(inst, part) if part else None,
                highlighted=inst.instance_id in highlighted,
                customizations=dict(inst.customizations),
            ))
        return items

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _instance(self, instance_id: str) -> PlacedInstance:
        inst = self._design.find(instance_id)
        if inst is None:
            raise InstanceNotFound(instance_id)
        return inst

    def _execute(self, command: DesignCommand) -> None:
        previous = self._design.metadata
        command.apply(self._design)
        try:
            refresh_metadata(self._design, self._catalog)
        except Exception:
            command.revert(self._design)
            self._design.metadata = previous
            raise
        self._undo_manager.push(command)
        self._bump_version()
        self._recompute()
        self.undo_state_changed.emit()

    def _bump_version(self) -> None:
        was_dirty = self.is_dirty
        self._version += 1
        if not was_dirty:
            self.dirty_changed.emit(True)

    def _recompute(self) -> None:
        self._validation = self._validator.validate(self._design)
        self.validation_changed.emit(self._validation)
        self._reprice()

    def _reprice(self) -> None:
        self._pricing = pricing_breakdown(
            self._design, self._catalog, self._location,
            self._include_installation, self._rates,
        )
        self.pricing_changed.emit(self._pricing)
