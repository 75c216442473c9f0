from datetime import datetime, timezone
from enum import Enum

from eduportal.grading.entities import GradeRecord


class GradeStatus(str, Enum):
    NOT_SUBMITTED = "Not Submitted"
    SUBMITTED_ON_TIME = "Submitted"
    SUBMITTED_LATE = "Submitted (Late)"
    GRADED = "Graded"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_status(record: GradeRecord, due_date: datetime) -> GradeStatus:
    """
    Display status for one grade record, highest priority first:
    - a grade is present -> GRADED (a grade may exist without a submission)
    - no submission -> NOT_SUBMITTED
    - submitted at or before the due date -> SUBMITTED_ON_TIME
    - otherwise -> SUBMITTED_LATE

    Recomputed on every read; never cached on the record.
    """
    if record.grade is not None:
        return GradeStatus.GRADED
    if record.submission is None:
        return GradeStatus.NOT_SUBMITTED
    if _as_utc(record.submission.submitted_at) <= _as_utc(due_date):
        return GradeStatus.SUBMITTED_ON_TIME
    return GradeStatus.SUBMITTED_LATE
