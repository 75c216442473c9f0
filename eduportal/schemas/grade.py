from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from eduportal.schemas.submission import SubmissionRead
from eduportal.schemas.task import TaskRead
from eduportal.schemas.user import StudentRead


class GradeRead(BaseModel):
    id: int
    student: StudentRead
    submission: Optional[SubmissionRead] = None

    grade: Optional[float] = None
    feedback: str = ""
    status: str  # "Pending" | "Graded"
    graded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GradingDataset(BaseModel):
    task: TaskRead
    grades: list[GradeRead]


class GradeUpdate(BaseModel):
    record_id: int
    grade: Optional[float] = None
    feedback: str = ""


class GradeBatch(BaseModel):
    grades: list[GradeUpdate] = Field(default_factory=list)


class GradeBatchResult(BaseModel):
    updated: int
    message: str
