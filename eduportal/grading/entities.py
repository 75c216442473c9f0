from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CourseRef(BaseModel):
    id: int
    title: str


class TaskInfo(BaseModel):
    id: int
    title: str
    type: str = "Assignment"
    max_points: float = Field(gt=0)
    due_date: datetime
    course: CourseRef


class Attachment(BaseModel):
    file_name: str
    url: str
    file_type: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return bool(self.file_type) and self.file_type.startswith("image/")


class SubmissionInfo(BaseModel):
    id: int
    submitted_at: datetime
    attachments: list[Attachment] = Field(default_factory=list)
    content: Optional[str] = None


class StudentRef(BaseModel):
    id: int
    first_name: str
    last_name: str = ""
    email: str


class GradeRecord(BaseModel):
    id: int
    student: StudentRef
    submission: Optional[SubmissionInfo] = None
    grade: Optional[float] = None
    feedback: str = ""

    # client-only working-set flag, never serialized
    is_dirty: bool = Field(default=False, exclude=True)


class GradeChange(BaseModel):
    record_id: int
    grade: Optional[float] = None
    feedback: str = ""


class GradingDataset(BaseModel):
    task: TaskInfo
    grades: list[GradeRecord]
