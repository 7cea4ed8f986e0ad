"""QThread worker for OpenWeatherMap lookups."""

from __future__ import annotations

from typing import Any, Callable

from loguru import logger
from PySide6.QtCore import QObject, QThread, Signal, Slot

from src.core.errors import NetworkFailureError


class LocationLookupWorker(QObject):
    """Background worker running one blocking location lookup.

    Results are tagged with ``request_id`` so the receiver can drop
    answers to lookups it has already replaced.
    """

    sigFinished = Signal(int, object)
    sigFailed = Signal(int, str)
    sigCancelled = Signal(int)
    sigDone = Signal()

    def __init__(self, request_id: int, lookup: Callable[..., Any], *args: Any) -> None:
        super().__init__()
        self.request_id = request_id
        self._lookup = lookup
        self._args = args
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def request_cancel(self) -> None:
        """Request best-effort cancellation."""
        self._cancelled = True

    @Slot()
    def run(self) -> None:
        """Execute the lookup and emit the outcome."""
        try:
            self._execute()
        finally:
            self.sigDone.emit()

    def _execute(self) -> None:
        if self._cancelled:
            self.sigCancelled.emit(self.request_id)
            return
        try:
            result = self._lookup(*self._args)
        except NetworkFailureError as exc:
            logger.warning(f"Location lookup {self.request_id} failed: {exc}")
            if self._cancelled:
                self.sigCancelled.emit(self.request_id)
            else:
                self.sigFailed.emit(self.request_id, str(exc))
            return
        if self._cancelled:
            self.sigCancelled.emit(self.request_id)
            return
        self.sigFinished.emit(self.request_id, result)


def start_lookup_thread(worker: LocationLookupWorker, parent: QObject) -> QThread:
    """Move ``worker`` to a new thread owned by ``parent`` and start it.

    The thread quits once the worker has emitted its outcome.
    """
    thread = QThread(parent)
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    worker.sigDone.connect(thread.quit)
    thread.start()
    return thread
