import logging
import math

from eduportal.grading.entities import GradeRecord
from eduportal.grading.errors import EditPreconditionError, GradeValidationError, UnknownRecordError
from eduportal.grading.store import GradeRecordStore

logger = logging.getLogger(__name__)


def parse_grade(raw_value) -> float | None:
    """Turn form input into a grade. Empty input (``None`` or blank text) clears it."""
    if raw_value is None:
        return None
    if isinstance(raw_value, bool):
        raise GradeValidationError("Grade must be a number", value=raw_value)
    if isinstance(raw_value, (int, float)):
        try:
            value = float(raw_value)
        except OverflowError:
            raise GradeValidationError("Grade must be a finite number", value=raw_value)
    else:
        text = str(raw_value).strip()
        if text == "":
            return None
        try:
            value = float(text)
        except ValueError:
            raise GradeValidationError(f"Grade must be a number, got {raw_value!r}", value=raw_value)

    if not math.isfinite(value):
        raise GradeValidationError("Grade must be a finite number", value=raw_value)
    return value


class EditController:
    """Mediates every change to ``grade`` and ``feedback``.

    At most one record is editable at a time: ``active_edit_id``. Switching
    to another record keeps whatever unsaved edits the previous one has.
    """

    def __init__(self, store: GradeRecordStore):
        self._store = store
        self._active_edit_id: int | None = None

    @property
    def active_edit_id(self) -> int | None:
        return self._active_edit_id

    def begin_edit(self, record_id: int) -> None:
        if record_id not in self._store:
            raise UnknownRecordError(f"No grade record {record_id} in this session")
        self._active_edit_id = record_id

    def end_edit(self) -> None:
        self._active_edit_id = None

    def _editable(self, record_id: int) -> GradeRecord | None:
        record = self._store.get(record_id)
        if record is None:
            # stale id from before a reload
            logger.debug("Ignoring edit for unknown grade record %s", record_id)
            return None
        if record_id != self._active_edit_id:
            raise EditPreconditionError(
                f"Grade record {record_id} is not being edited (active: {self._active_edit_id})"
            )
        return record

    def set_grade(self, record_id: int, raw_value) -> bool:
        record = self._editable(record_id)
        if record is None:
            return False

        max_points = self._store.task.max_points
        try:
            value = parse_grade(raw_value)
        except GradeValidationError as exc:
            exc.record_id = record_id
            raise

        if value is not None and value > max_points:
            raise GradeValidationError(
                f"Grade cannot exceed {max_points:g} points.",
                record_id=record_id,
                value=raw_value,
            )
        if value is not None and value < 0:
            raise GradeValidationError(
                "Grade cannot be negative.",
                record_id=record_id,
                value=raw_value,
            )

        # marked dirty even when the value did not change
        record.grade = value
        record.is_dirty = True
        return True

    def set_feedback(self, record_id: int, text: str | None) -> bool:
        record = self._editable(record_id)
        if record is None:
            return False

        record.feedback = text or ""
        record.is_dirty = True
        return True
