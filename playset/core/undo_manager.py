"""Undo/Redo manager — command-based design history.

Stores applied DesignCommand objects in bounded stacks. Pure Python class
(no Qt dependency); the controller applies/reverts the commands and
recomputes derived state.
"""

from __future__ import annotations

from playset.constants import MAX_UNDO_LEVELS
from playset.core.commands import DesignCommand


class UndoManager:
    """Command-based undo/redo manager.

    Usage::

        mgr = UndoManager()
        command.apply(design)
        mgr.push(command)          # After mutation
        cmd = mgr.undo()           # cmd.revert(design)
        cmd = mgr.redo()           # cmd.apply(design)
    """

    def __init__(self, max_levels: int = MAX_UNDO_LEVELS) -> None:
        if max_levels < 1:
            raise ValueError("max_levels must be at least 1")
        self._undo_stack: list[DesignCommand] = []
        self._redo_stack: list[DesignCommand] = []
        self._max_levels = max_levels

    @property
    def can_undo(self) -> bool:
        return len(self._undo_stack) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._redo_stack) > 0

    @property
    def undo_count(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_count(self) -> int:
        return len(self._redo_stack)

    @property
    def undo_label(self) -> str | None:
        return self._undo_stack[-1].label if self._undo_stack else None

    @property
    def redo_label(self) -> str | None:
        return self._redo_stack[-1].label if self._redo_stack else None

    def push(self, command: DesignCommand) -> None:
        """Record an applied command. Clears redo stack."""
        self._undo_stack.append(command)
        if len(self._undo_stack) > self._max_levels:
            self._undo_stack.pop(0)  # Drop oldest
        self._redo_stack.clear()

    def undo(self) -> DesignCommand | None:
        """Move the newest command to the redo stack and return it for reverting."""
        if not self._undo_stack:
            return None
        command = self._undo_stack.pop()
        self._redo_stack.append(command)
        return command

    def redo(self) -> DesignCommand | None:
        """Move the newest undone command back and return it for re-applying."""
        if not self._redo_stack:
            return None
        command = self._redo_stack.pop()
        self._undo_stack.append(command)
        return command

    def clear(self) -> None:
        """Clear both stacks (e.g., on design load)."""
        self._undo_stack.clear()
        self._redo_stack.clear()
