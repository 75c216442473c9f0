from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from eduportal.core.current_user import get_current_user
from eduportal.core.deps import get_db
from eduportal.models.course import Course
from eduportal.models.task import Task
from eduportal.models.user import User


def require_faculty(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "faculty":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Faculty role required",
        )
    return current_user


def owns_course(db: Session, course_id: int, faculty: User) -> bool:
    course = db.query(Course).filter(Course.id == course_id).first()
    return course is not None and course.faculty_id == faculty.id


def require_task_faculty(
    task_id: int,
    db: Session = Depends(get_db),
    faculty: User = Depends(require_faculty),
) -> Task:
    """Resolve ``task_id`` from the path; only the faculty of its course gets through."""
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    if not owns_course(db, task.course_id, faculty):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to grade this task",
        )
    return task
