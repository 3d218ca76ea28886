"""Design commands — reversible mutations recorded in the undo history.

Each command carries the forward change plus whatever it needs to restore
the prior state. ``apply`` and ``revert`` only touch the instance list (and
name); the controller recomputes metadata afterwards.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from playset.models.catalog import Vector3
from playset.models.design import Design, PlacedInstance


@dataclass
class DesignCommand:
    """Base class. ``label`` is shown in Undo/Redo menu text."""
    label = "Edit"

    def apply(self, design: Design) -> None:
        raise NotImplementedError

    def revert(self, design: Design) -> None:
        raise NotImplementedError

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return ()


def _require(design: Design, instance_id: str) -> PlacedInstance:
    inst = design.find(instance_id)
    if inst is None:
        # The controller checks ids before building commands
        raise RuntimeError(f"History out of sync: no instance {instance_id!r}")
    return inst


@dataclass
class AddPart(DesignCommand):
    instance: PlacedInstance
    label = "Add Part"

    def apply(self, design: Design) -> None:
        design.instances.append(copy.deepcopy(self.instance))

    def revert(self, design: Design) -> None:
        _require(design, self.instance.instance_id)
        del design.instances[design.index_of(self.instance.instance_id)]

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return (self.instance.instance_id,)


@dataclass
class RemovePart(DesignCommand):
    """Remove an instance; revert puts it back at its original index."""
    instance_id: str
    removed: PlacedInstance | None = None
    index: int = -1
    label = "Remove Part"

    def apply(self, design: Design) -> None:
        self.index = design.index_of(self.instance_id)
        self.removed = _require(design, self.instance_id)
        del design.instances[self.index]

    def revert(self, design: Design) -> None:
        design.instances.insert(self.index, self.removed)

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return (self.instance_id,)


@dataclass
class MovePart(DesignCommand):
    instance_id: str
    old_position: Vector3
    new_position: Vector3
    label = "Move Part"

    def apply(self, design: Design) -> None:
        _require(design, self.instance_id).position = self.new_position

    def revert(self, design: Design) -> None:
        _require(design, self.instance_id).position = self.old_position

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return (self.instance_id,)


@dataclass
class RotatePart(DesignCommand):
    instance_id: str
    old_rotation: Vector3
    new_rotation: Vector3
    label = "Rotate Part"

    def apply(self, design: Design) -> None:
        _require(design, self.instance_id).rotation = self.new_rotation

    def revert(self, design: Design) -> None:
        _require(design, self.instance_id).rotation = self.old_rotation

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return (self.instance_id,)


@dataclass
class SetCustomization(DesignCommand):
    """Set (or with ``None`` remove) one override key."""
    instance_id: str
    key: str
    old_value: str | None
    new_value: str | None
    label = "Customize Part"

    @staticmethod
    def _write(inst: PlacedInstance, key: str, value: str | None) -> None:
        if value is None:
            inst.customizations.pop(key, None)
        else:
            inst.customizations[key] = value

    def apply(self, design: Design) -> None:
        self._write(_require(design, self.instance_id), self.key, self.new_value)

    def revert(self, design: Design) -> None:
        self._write(_require(design, self.instance_id), self.key, self.old_value)

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return (self.instance_id,)


@dataclass
class ClearDesign(DesignCommand):
    previous: list[PlacedInstance] = field(default_factory=list)
    label = "Clear Design"

    def apply(self, design: Design) -> None:
        self.previous = design.instances
        design.instances = []

    def revert(self, design: Design) -> None:
        design.instances = self.previous


@dataclass
class RenameDesign(DesignCommand):
    old_name: str
    new_name: str
    label = "Rename Design"

    def apply(self, design: Design) -> None:
        design.name = self.new_name

    def revert(self, design: Design) -> None:
        design.name = self.old_name
