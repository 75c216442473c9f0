from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduportal.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    roll_number: Mapped[str | None] = mapped_column(String(50))
    photo: Mapped[str | None] = mapped_column(String(500))
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="student")

    grades = relationship(
        "Grade",
        back_populates="student",
        foreign_keys="Grade.student_id",
        cascade="all, delete-orphan",
    )

    submissions = relationship(
        "Submission", back_populates="student", cascade="all, delete-orphan"
    )
