from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from eduportal.db.base_class import Base

class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=True)
    # [{"file_name": ..., "url": ..., "file_type": ...}]; files themselves live in external storage
    attachments = Column(JSON, nullable=False, default=list)

    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("task_id", "student_id", name="uq_submission_task_student"),
    )

    task = relationship("Task", back_populates="submissions")
    student = relationship("User", back_populates="submissions")
