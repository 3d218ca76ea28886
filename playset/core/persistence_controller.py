"""Persistence controller — asynchronous save/load with request sequencing.

Every request gets a global sequence number. For one design key only one
save is in flight at a time; a save requested meanwhile is queued and
replaces any save already queued (newest snapshot wins), so store writes
land in request order. A result whose sequence number is lower than the
latest request for its key is stale and is discarded. Failures never touch
the working design; they are reported through ``failed`` and the last
failed save can be retried.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import QObject, pyqtSignal

from playset.core.design_controller import DesignController
from playset.database.adapter import PersistenceAdapter
from playset.workers.persistence_worker import PersistenceRequest, PersistenceWorker

logger = logging.getLogger(__name__)

# Sequencing key for a design that has not been stored yet
UNSAVED_KEY = "<unsaved>"


class PersistenceController(QObject):
    """Runs store requests for a DesignController on worker threads.

    Args:
        adapter: Store implementation.
        controller: The design session to save from / load into.
        owner_id: Owner scope for every request.
    """

    saved = pyqtSignal(str)  # design_id
    loaded = pyqtSignal(object)  # Design
    listed = pyqtSignal(object)  # list[DesignSummary]
    deleted = pyqtSignal(str)
    duplicated = pyqtSignal(str)  # new design_id
    failed = pyqtSignal(str, str)  # operation, message
    busy_changed = pyqtSignal(bool)

    def __init__(
        self,
        adapter: PersistenceAdapter,
        controller: DesignController,
        owner_id: str,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._adapter = adapter
        self._controller = controller
        self._owner_id = owner_id
        self._seq = 0
        self._latest: dict[str, int] = {}
        self._in_flight: dict[str, PersistenceRequest] = {}
        self._queued: dict[str, PersistenceRequest] = {}
        self._last_failed_save: PersistenceRequest | None = None
        self._workers: list[PersistenceWorker] = []

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def is_busy(self) -> bool:
        return bool(self._workers)

    @property
    def has_failed_save(self) -> bool:
        return self._last_failed_save is not None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def save(self) -> int:
        """Save a snapshot of the working design. Returns the request number."""
        design = self._controller.snapshot()
        key = design.id or UNSAVED_KEY
        req = PersistenceRequest(
            op="save",
            seq=self._next_seq(),
            key=key,
            owner_id=self._owner_id,
            design=design,
            version=self._controller.version,
            session=self._controller.session,
        )
        self._latest[key] = req.seq
        if key in self._in_flight:
            replaced = self._queued.get(key)
            if replaced is not None:
                logger.debug("Save #%d superseded by #%d before start", replaced.seq, req.seq)
            self._queued[key] = req
        else:
            self._run(req)
        return req.seq

    def retry_save(self) -> int | None:
        """Re-issue a save after a failure, using the current design state."""
        if self._last_failed_save is None:
            return None
        self._last_failed_save = None
        return self.save()

    def load(self, design_id: str) -> int:
        """Load a stored design into the controller when it arrives."""
        req = PersistenceRequest(
            op="load", seq=self._next_seq(), key=f"load:{design_id}",
            owner_id=self._owner_id, design_id=design_id,
        )
        self._latest["load"] = req.seq
        self._run(req)
        return req.seq

    def list_designs(self) -> int:
        req = PersistenceRequest(op="list", seq=self._next_seq(), owner_id=self._owner_id)
        self._latest["list"] = req.seq
        self._run(req)
        return req.seq

    def delete(self, design_id: str) -> int:
        req = PersistenceRequest(
            op="delete", seq=self._next_seq(), owner_id=self._owner_id, design_id=design_id,
        )
        self._run(req)
        return req.seq

    def duplicate(self, design_id: str) -> int:
        req = PersistenceRequest(
            op="duplicate", seq=self._next_seq(), owner_id=self._owner_id, design_id=design_id,
        )
        self._run(req)
        return req.seq

    # ------------------------------------------------------------------
    # Worker plumbing
    # ------------------------------------------------------------------

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def _run(self, req: PersistenceRequest) -> None:
        if req.op == "save":
            self._in_flight[req.key] = req
        worker = PersistenceWorker(self._adapter, self)
        worker.setup(req)
        worker.result_ready.connect(self._on_result)
        worker.error_occurred.connect(self._on_error)
        worker.finished.connect(lambda w=worker: self._on_worker_finished(w))
        worker.finished.connect(worker.deleteLater)
        was_busy = self.is_busy
        self._workers.append(worker)
        if not was_busy:
            self.busy_changed.emit(True)
        self._start_worker(worker)

    def _start_worker(self, worker: PersistenceWorker) -> None:
        worker.start()

    def _on_worker_finished(self, worker: PersistenceWorker) -> None:
        """Forget a worker once its thread has stopped."""
        if worker in self._workers:
            self._workers.remove(worker)
        if not self._workers:
            self.busy_changed.emit(False)

    def _finish_save(self, req: PersistenceRequest, design_id: str | None) -> None:
        """Clear the in-flight slot and start the queued save, if any."""
        self._in_flight.pop(req.key, None)
        queued = self._queued.pop(req.key, None)
        if queued is None:
            return
        if design_id and queued.design.id is None and queued.session == req.session:
            # Update the row the earlier insert created, sequenced under its id
            queued.design.id = design_id
            queued.key = design_id
            self._latest[design_id] = max(self._latest.get(design_id, 0), queued.seq)
        self._run(queued)

    def _is_stale(self, req: PersistenceRequest, slot: str) -> bool:
        return req.seq < self._latest.get(slot, req.seq)

    def _on_result(self, req: PersistenceRequest, result) -> None:
        op = req.op
        if op == "save":
            same_session = req.session == self._controller.session
            if same_session and self._controller.design.id is None:
                self._controller.assign_id(result)
            stale = self._is_stale(req, req.key)
            self._finish_save(req, result)
            if stale:
                logger.debug("Discarding superseded save #%d", req.seq)
                return
            if same_session:
                self._controller.mark_saved(req.version)
            self.saved.emit(result)
        elif op == "load":
            if self._is_stale(req, "load"):
                logger.debug("Discarding superseded load #%d", req.seq)
                return
            self._controller.load_design(result)
            self.loaded.emit(result)
        elif op == "list":
            if self._is_stale(req, "list"):
                logger.debug("Discarding superseded list #%d", req.seq)
                return
            self.listed.emit(result)
        elif op == "delete":
            self.deleted.emit(result)
        elif op == "duplicate":
            self.duplicated.emit(result)

    def _on_error(self, req: PersistenceRequest, message: str) -> None:
        if req.op == "save":
            stale = self._is_stale(req, req.key)
            self._finish_save(req, None)
            if stale:
                logger.debug("Discarding failure of superseded save #%d: %s", req.seq, message)
                return
            self._last_failed_save = req
        elif req.op in ("load", "list") and self._is_stale(req, req.op):
            logger.debug("Discarding failure of superseded %s #%d", req.op, req.seq)
            return
        logger.warning("Persistence %s #%d failed: %s", req.op, req.seq, message)
        self.failed.emit(req.op, message)
