"""Persistence worker — background thread for one store request.

Runs a single PersistenceAdapter call off the UI thread.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from PyQt6.QtCore import QThread, pyqtSignal

if TYPE_CHECKING:
    from playset.database.adapter import PersistenceAdapter
    from playset.models.design import Design


@dataclass
class PersistenceRequest:
    """One store call, tagged with its global sequence number.

    Attributes:
        op: "save", "load", "list", "delete" or "duplicate".
        seq: Monotonic request number assigned by the controller.
        key: Sequencing key (design id, or the unsaved-design key).
        owner_id: Owner scope for the store.
        design: Snapshot to save.
        design_id: Target of load/delete/duplicate.
        version: Controller content version the snapshot was taken at.
        session: Controller session the snapshot belongs to.
    """
    op: str
    seq: int
    key: str = ""
    owner_id: str = ""
    design: Design | None = None
    design_id: str = ""
    version: int = 0
    session: int = 0


class PersistenceWorker(QThread):
    """Background thread for a single persistence request.

    Emits result_ready(request, result) or error_occurred(request, message).
    """

    result_ready = pyqtSignal(object, object)  # PersistenceRequest, result
    error_occurred = pyqtSignal(object, str)  # PersistenceRequest, message

    def __init__(self, adapter: PersistenceAdapter, parent=None):
        super().__init__(parent)
        self._adapter = adapter
        self._request: PersistenceRequest | None = None

    @property
    def request(self) -> PersistenceRequest | None:
        return self._request

    def setup(self, request: PersistenceRequest) -> None:
        """Configure the request before starting."""
        self._request = request

    def run(self) -> None:
        """Execute the store call."""
        req = self._request
        if req is None:
            return
        try:
            result = self._dispatch(req)
            self.result_ready.emit(req, result)
        except Exception as e:
            self.error_occurred.emit(req, str(e))

    def _dispatch(self, req: PersistenceRequest) -> Any:
        if req.op == "save":
            return self._adapter.save(req.design, req.owner_id)
        if req.op == "load":
            return self._adapter.load(req.design_id, req.owner_id)
        if req.op == "list":
            return self._adapter.list_designs(req.owner_id)
        if req.op == "delete":
            self._adapter.delete(req.design_id, req.owner_id)
            return req.design_id
        if req.op == "duplicate":
            return self._adapter.duplicate(req.design_id, req.owner_id)
        raise ValueError(f"Unknown persistence operation: {req.op!r}")
