from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AttachmentRead(BaseModel):
    file_name: str
    url: str
    file_type: Optional[str] = None


class SubmissionRead(BaseModel):
    id: int
    task_id: int
    student_id: int
    submitted_at: datetime
    content: Optional[str] = None
    attachments: list[AttachmentRead] = []

    # computed against the task due date: "On-Time" | "Late"
    status: str

    class Config:
        from_attributes = True
