import logging
import math
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from eduportal.core.deps import get_db
from eduportal.core.permissions import owns_course, require_faculty, require_task_faculty
from eduportal.models.grade import Grade
from eduportal.models.submission import Submission
from eduportal.models.task import Task
from eduportal.models.user import User
from eduportal.schemas.grade import GradeBatch, GradeBatchResult, GradingDataset, GradeRead
from eduportal.schemas.submission import SubmissionRead
from eduportal.schemas.task import TaskRead, TaskStats

logger = logging.getLogger(__name__)

router = APIRouter()


def _as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _submission_status(task: Task, submitted_at: datetime) -> str:
    if _as_utc(submitted_at) <= _as_utc(task.due_date):
        return "On-Time"
    return "Late"


def _attach_computed(task: Task, grade: Grade) -> Grade:
    # derived on every read, never stored
    grade.status = "Graded" if grade.grade is not None else "Pending"
    if grade.submission is not None:
        grade.submission.status = _submission_status(task, grade.submission.submitted_at)
    return grade


@router.get("/tasks/{task_id}/grades", response_model=GradingDataset)
def get_task_grades(
    task_id: int,
    db: Session = Depends(get_db),
    faculty: User = Depends(require_faculty),
):
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task or not owns_course(db, task.course_id, faculty):
        raise HTTPException(
            status_code=404,
            detail="Task not found or you do not have access to it.",
        )

    grades = (
        db.query(Grade)
        .join(User, Grade.student_id == User.id)
        .options(joinedload(Grade.student), joinedload(Grade.submission))
        .filter(Grade.task_id == task_id)
        .order_by(User.last_name.asc(), User.first_name.asc(), Grade.id.asc())
        .all()
    )

    for g in grades:
        _attach_computed(task, g)

    return GradingDataset(
        task=TaskRead.model_validate(task),
        grades=[GradeRead.model_validate(g) for g in grades],
    )


@router.post("/tasks/{task_id}/grades", response_model=GradeBatchResult)
def save_task_grades(
    payload: GradeBatch,
    task: Task = Depends(require_task_faculty),
    db: Session = Depends(get_db),
    faculty: User = Depends(require_faculty),
):
    if not payload.grades:
        raise HTTPException(status_code=400, detail="No grade data provided.")

    record_ids = [g.record_id for g in payload.grades]
    if len(set(record_ids)) != len(record_ids):
        raise HTTPException(status_code=400, detail="Each grade record may appear only once per batch")

    rows = (
        db.query(Grade)
        .filter(Grade.task_id == task.id, Grade.id.in_(record_ids))
        .all()
    )
    by_id = {row.id: row for row in rows}

    unknown = [rid for rid in record_ids if rid not in by_id]
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Grade records do not belong to this task: {unknown}",
        )

    # validate the whole batch before touching any row (all-or-nothing)
    for update in payload.grades:
        if update.grade is None:
            continue
        if not math.isfinite(update.grade) or update.grade < 0 or update.grade > task.max_points:
            raise HTTPException(
                status_code=400,
                detail=f"grade must be between 0 and {task.max_points:g}",
            )

    now = datetime.now(timezone.utc)
    for update in payload.grades:
        row = by_id[update.record_id]
        row.grade = update.grade
        row.feedback = update.feedback.strip()
        row.graded_at = now if update.grade is not None else None
        row.graded_by = faculty.id

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Saved %d grade(s) for task %s", len(rows), task.id)
    return GradeBatchResult(updated=len(rows), message="Grades saved successfully.")


@router.get("/tasks/{task_id}/stats", response_model=TaskStats)
def get_task_stats(
    task: Task = Depends(require_task_faculty),
    db: Session = Depends(get_db),
):
    task_id = task.id

    total_enrolled = (
        db.query(func.count(Grade.id)).filter(Grade.task_id == task_id).scalar()
    ) or 0

    total_submitted = (
        db.query(func.count(Grade.id))
        .filter(Grade.task_id == task_id, Grade.submission_id.is_not(None))
        .scalar()
    ) or 0

    total_graded = (
        db.query(func.count(Grade.id))
        .filter(Grade.task_id == task_id, Grade.grade.is_not(None))
        .scalar()
    ) or 0

    return TaskStats(
        task_id=task_id,
        total_enrolled=total_enrolled,
        total_submitted=total_submitted,
        total_graded=total_graded,
    )


@router.get(
    "/submissions/{submission_id}",
    response_model=SubmissionRead,
    responses={404: {"description": "Submission not found"}},
)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    faculty: User = Depends(require_faculty),
):
    sub = db.query(Submission).filter(Submission.id == submission_id).first()
    if not sub:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")

    task = db.query(Task).filter(Task.id == sub.task_id).first()
    if not task or not owns_course(db, task.course_id, faculty):
        # not-owned submissions are reported exactly like missing ones
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")

    sub.status = _submission_status(task, sub.submitted_at)
    return sub
