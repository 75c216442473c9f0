"""Grading session for one task.

Ties the record store, edit controller, dirty tracker and batch save
coordinator together behind the operations a grading view calls.
``load`` and ``save`` are the only coroutines and share one lock, so a
reload never interleaves with a save. Edits are refused while either is
running, and ``close`` cancels whatever request is still outstanding.
"""
import asyncio
import logging
from typing import Awaitable, TypeVar

from eduportal.grading.changes import DirtyTracker
from eduportal.grading.editing import EditController
from eduportal.grading.entities import GradeChange, GradeRecord, SubmissionInfo, TaskInfo
from eduportal.grading.errors import (
    GatewayError,
    GradeValidationError,
    GradingError,
    LoadError,
    SessionBusyError,
    SessionClosedError,
)
from eduportal.grading.gateway import GradingGateway
from eduportal.grading.notices import NoticeLevel, Notifier, make_notify
from eduportal.grading.saving import BatchSaveCoordinator, SaveOutcome
from eduportal.grading.status import GradeStatus, resolve_status
from eduportal.grading.store import GradeRecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GradingSession:
    def __init__(self, gateway: GradingGateway, on_notice: Notifier | None = None):
        self._gateway = gateway
        self._notify = make_notify(on_notice)
        self._io_lock = asyncio.Lock()
        self._loading = False
        self._closed = False
        self._pending: set[asyncio.Future] = set()

        self._store = GradeRecordStore(gateway)
        self._editor = EditController(self._store)
        self._tracker = DirtyTracker(self._store)
        self._saver = BatchSaveCoordinator(
            gateway,
            self._store,
            self._tracker,
            self._editor,
            self._io_lock,
            self._notify,
        )

    # === read access ===

    @property
    def task(self) -> TaskInfo:
        return self._store.task

    @property
    def records(self) -> list[GradeRecord]:
        return self._store.records

    def record(self, record_id: int) -> GradeRecord | None:
        return self._store.get(record_id)

    @property
    def active_edit_id(self) -> int | None:
        return self._editor.active_edit_id

    @property
    def changes_pending(self) -> bool:
        return self._tracker.has_changes

    def collect_changes(self) -> list[GradeChange]:
        return self._tracker.collect_changes()

    @property
    def submission_count(self) -> int:
        return self._store.submission_count

    @property
    def busy(self) -> bool:
        return self._loading or self._saver.in_flight

    @property
    def closed(self) -> bool:
        return self._closed

    def status(self, record: GradeRecord) -> GradeStatus:
        return resolve_status(record, self._store.task.due_date)

    # === network operations ===

    async def _call(self, operation: Awaitable[T]) -> T:
        future = asyncio.ensure_future(operation)
        self._pending.add(future)
        try:
            result = await future
        except asyncio.CancelledError:
            if self._closed:
                raise SessionClosedError("Grading session was closed") from None
            raise
        finally:
            self._pending.discard(future)

        # the view went away while the response was in transit
        self._ensure_open()
        return result

    async def load(self, task_id: int) -> None:
        self._ensure_open()
        self._loading = True
        try:
            async with self._io_lock:
                self._ensure_open()
                await self._call(self._store.load(task_id))
                # full replacement: nothing from the previous set stays editable
                self._editor.end_edit()
        except LoadError:
            # never leave a stale or partial set behind a failed load
            self._store.clear()
            self._editor.end_edit()
            self._notify(NoticeLevel.ERROR, "Failed to fetch grading data.")
            raise
        finally:
            self._loading = False

    async def save(self) -> SaveOutcome:
        self._ensure_open()
        return await self._call(self._saver.save())

    async def preview(self, record: GradeRecord) -> SubmissionInfo | None:
        """Fetch the full submission (attachments, text) behind a record."""
        self._ensure_open()
        if record.submission is None:
            return None
        try:
            return await self._call(self._gateway.fetch_submission(record.submission.id))
        except GatewayError:
            self._notify(NoticeLevel.ERROR, "Failed to load submission.")
            raise

    # === editing ===

    def begin_edit(self, record_id: int) -> None:
        self._ensure_editable()
        self._editor.begin_edit(record_id)

    def end_edit(self) -> None:
        self._ensure_open()
        self._editor.end_edit()

    def set_grade(self, record_id: int, raw_value) -> bool:
        self._ensure_editable()
        try:
            return self._editor.set_grade(record_id, raw_value)
        except GradeValidationError as exc:
            self._notify(NoticeLevel.WARNING, str(exc))
            raise

    def set_feedback(self, record_id: int, text: str | None) -> bool:
        self._ensure_editable()
        return self._editor.set_feedback(record_id, text)

    # === teardown ===

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for future in list(self._pending):
            future.cancel()
        self._editor.end_edit()
        logger.debug("Grading session closed (%d request(s) cancelled)", len(self._pending))

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Grading session was closed")

    def _ensure_editable(self) -> None:
        self._ensure_open()
        if not self._store.loaded:
            raise GradingError("Load a task before editing grades")
        if self.busy:
            raise SessionBusyError("Grades cannot be edited while a load or save is in progress")
