import asyncio
import logging
from enum import Enum
from typing import Callable

from eduportal.grading.changes import DirtyTracker
from eduportal.grading.editing import EditController
from eduportal.grading.errors import GatewayError, LoadError, SaveError
from eduportal.grading.gateway import GradingGateway
from eduportal.grading.notices import NoticeLevel
from eduportal.grading.store import GradeRecordStore

logger = logging.getLogger(__name__)


class SaveOutcome(str, Enum):
    SAVED = "saved"
    NO_CHANGES = "no_changes"
    IN_FLIGHT = "in_flight"


class BatchSaveCoordinator:
    """Sends every dirty record in one request and reconciles the result.

    ``lock`` is the session-wide I/O lock shared with ``load``; a save
    holds it from the persist call through the follow-up reload.
    """

    def __init__(
        self,
        gateway: GradingGateway,
        store: GradeRecordStore,
        tracker: DirtyTracker,
        editor: EditController,
        lock: asyncio.Lock,
        notify: Callable[[NoticeLevel, str], None],
    ):
        self._gateway = gateway
        self._store = store
        self._tracker = tracker
        self._editor = editor
        self._lock = lock
        self._notify = notify
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def save(self) -> SaveOutcome:
        if not self._tracker.has_changes:
            self._notify(NoticeLevel.INFO, "No changes to save.")
            return SaveOutcome.NO_CHANGES

        if self._in_flight:
            self._notify(NoticeLevel.WARNING, "Grades are already being saved.")
            return SaveOutcome.IN_FLIGHT

        self._in_flight = True
        try:
            async with self._lock:
                return await self._save_locked()
        finally:
            self._in_flight = False

    async def _save_locked(self) -> SaveOutcome:
        # a load may have replaced the working set while we waited for the lock
        changes = self._tracker.collect_changes()
        if not changes:
            self._notify(NoticeLevel.INFO, "No changes to save.")
            return SaveOutcome.NO_CHANGES

        task_id = self._store.task_id
        logger.info("Saving %d grade change(s) for task %s", len(changes), task_id)

        try:
            await self._gateway.persist_batch(task_id, changes)
        except GatewayError as exc:
            self._notify(NoticeLevel.ERROR, "Failed to save grades.")
            raise SaveError(f"Failed to save grades: {exc}", status_code=exc.status_code) from exc

        try:
            await self._store.reload()
        except LoadError:
            # persisted, but the refreshed set is unavailable; records the
            # caller still holds must not look unsaved
            self._tracker.mark_clean(change.record_id for change in changes)
            self._store.clear()
            self._editor.end_edit()
            self._notify(NoticeLevel.ERROR, "Grades saved, but refreshing the grade list failed.")
            raise

        self._editor.end_edit()
        self._notify(NoticeLevel.SUCCESS, "Grades saved successfully!")
        return SaveOutcome.SAVED
