from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CourseRef(BaseModel):
    id: int
    title: str

    class Config:
        from_attributes = True


class TaskRead(BaseModel):
    id: int
    title: str
    type: str
    description: Optional[str] = None
    photo: Optional[str] = None
    max_points: float
    publish_date: Optional[datetime] = None
    due_date: datetime
    course: CourseRef

    class Config:
        from_attributes = True


class TaskStats(BaseModel):
    task_id: int
    total_enrolled: int
    total_submitted: int
    total_graded: int
