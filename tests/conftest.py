import asyncio
import os
from datetime import datetime, timezone
from types import SimpleNamespace

os.environ.setdefault("EDUPORTAL_DATABASE_URL", "sqlite:///./test_eduportal.db")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from eduportal.core.config import IDENTITY_HEADER
from eduportal.core.deps import get_db
from eduportal.db.base_class import Base
from eduportal.grading.entities import (
    CourseRef,
    GradeRecord,
    GradingDataset,
    StudentRef,
    SubmissionInfo,
    TaskInfo,
)
from eduportal.grading.errors import GatewayError
from eduportal.grading.gateway import HttpGradingGateway
from eduportal.main import app
from eduportal.models.course import Course
from eduportal.models.grade import Grade
from eduportal.models.submission import Submission
from eduportal.models.task import Task
from eduportal.models.user import User

TEST_DB_FILE = "test_eduportal.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

DUE_DATE = datetime(2024, 1, 10, tzinfo=timezone.utc)
ON_TIME = datetime(2024, 1, 9, 23, 0, tzinfo=timezone.utc)
LATE = datetime(2024, 1, 11, tzinfo=timezone.utc)

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def auth_header(user_id: int) -> dict:
    return {IDENTITY_HEADER: str(user_id)}


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture()
def seed():
    """Seed a clean grading dataset: one course, one task, four students."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Grade).delete()
        db.query(Submission).delete()
        db.query(Task).delete()
        db.query(Course).delete()
        db.query(User).delete()
        db.commit()

        faculty = User(email="faculty1@example.com", first_name="Fiona", last_name="Faculty", role="faculty")
        other_faculty = User(email="faculty2@example.com", first_name="Oscar", last_name="Other", role="faculty")
        ada = User(email="ada@example.com", first_name="Ada", last_name="Lovelace", role="student")
        grace = User(email="grace@example.com", first_name="Grace", last_name="Hopper", role="student")
        alan = User(email="alan@example.com", first_name="Alan", last_name="Turing", role="student")
        edsger = User(email="edsger@example.com", first_name="Edsger", last_name="Dijkstra", role="student")
        db.add_all([faculty, other_faculty, ada, grace, alan, edsger])
        db.commit()

        course = Course(title="CS101", faculty_id=faculty.id)
        db.add(course)
        db.commit()

        task = Task(
            course_id=course.id,
            title="Linked Lists",
            type="Assignment",
            max_points=100,
            publish_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            due_date=DUE_DATE,
        )
        db.add(task)
        db.commit()

        ada_sub = Submission(
            task_id=task.id,
            student_id=ada.id,
            content="My linked list notes",
            attachments=[
                {"file_name": "list.py", "url": "https://files.example.com/list.py", "file_type": "text/x-python"},
                {"file_name": "diagram.png", "url": "https://files.example.com/diagram.png", "file_type": "image/png"},
            ],
            submitted_at=ON_TIME,
        )
        grace_sub = Submission(task_id=task.id, student_id=grace.id, content="late work", attachments=[], submitted_at=LATE)
        db.add_all([ada_sub, grace_sub])
        db.commit()

        grades = {
            "ada": Grade(task_id=task.id, student_id=ada.id, submission_id=ada_sub.id),
            "grace": Grade(task_id=task.id, student_id=grace.id, submission_id=grace_sub.id),
            "alan": Grade(task_id=task.id, student_id=alan.id, grade=85, feedback="Graded offline"),
            "edsger": Grade(task_id=task.id, student_id=edsger.id),
        }
        db.add_all(grades.values())
        db.commit()

        yield SimpleNamespace(
            faculty_id=faculty.id,
            other_faculty_id=other_faculty.id,
            student_id=ada.id,
            course_id=course.id,
            task_id=task.id,
            ada_submission_id=ada_sub.id,
            grade_ids={name: g.id for name, g in grades.items()},
        )
    finally:
        db.close()


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def http_gateway():
    """Build grading gateways that talk to the app in-process over ASGI."""
    app.dependency_overrides[get_db] = override_get_db

    def build(user_id: int) -> HttpGradingGateway:
        return HttpGradingGateway(
            httpx.AsyncClient(
                transport=httpx.ASGITransport(app=app),
                base_url="http://testserver",
                headers=auth_header(user_id),
            )
        )

    yield build
    app.dependency_overrides.clear()


# === in-memory gateway ===


def make_dataset() -> GradingDataset:
    task = TaskInfo(
        id=1,
        title="Linked Lists",
        type="Assignment",
        max_points=100,
        due_date=DUE_DATE,
        course=CourseRef(id=1, title="CS101"),
    )
    grades = [
        GradeRecord(
            id=1,
            student=StudentRef(id=10, first_name="Ada", last_name="Lovelace", email="ada@example.com"),
            submission=SubmissionInfo(id=100, submitted_at=ON_TIME, content="notes"),
        ),
        GradeRecord(
            id=2,
            student=StudentRef(id=11, first_name="Grace", last_name="Hopper", email="grace@example.com"),
            submission=SubmissionInfo(id=101, submitted_at=LATE),
        ),
        GradeRecord(
            id=3,
            student=StudentRef(id=12, first_name="Alan", last_name="Turing", email="alan@example.com"),
            grade=85,
            feedback="Graded offline",
        ),
        GradeRecord(
            id=4,
            student=StudentRef(id=13, first_name="Edsger", last_name="Dijkstra", email="edsger@example.com"),
        ),
    ]
    return GradingDataset(task=task, grades=grades)


class FakeGateway:
    """Grading gateway backed by an in-memory dataset.

    ``*_gate`` events let a test hold a request open; ``*_error`` makes the
    next calls fail.
    """

    def __init__(self, dataset: GradingDataset):
        self.dataset = dataset
        self.fetch_calls = 0
        self.persist_calls: list[list] = []
        self.fetch_error: Exception | None = None
        self.persist_error: Exception | None = None
        self.fetch_gate: asyncio.Event | None = None
        self.persist_gate: asyncio.Event | None = None

    async def fetch_dataset(self, task_id):
        self.fetch_calls += 1
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error
        if task_id != self.dataset.task.id:
            raise GatewayError("Task not found", status_code=404)
        return self.dataset.model_copy(deep=True)

    async def persist_batch(self, task_id, changes):
        self.persist_calls.append([c.model_copy() for c in changes])
        if self.persist_gate is not None:
            await self.persist_gate.wait()
        if self.persist_error is not None:
            raise self.persist_error
        by_id = {g.id: g for g in self.dataset.grades}
        for change in changes:
            by_id[change.record_id].grade = change.grade
            by_id[change.record_id].feedback = change.feedback

    async def fetch_submission(self, submission_id):
        for g in self.dataset.grades:
            if g.submission is not None and g.submission.id == submission_id:
                return g.submission.model_copy(deep=True)
        raise GatewayError("Submission not found", status_code=404)


@pytest.fixture()
def fake_gateway():
    return FakeGateway(make_dataset())


@pytest.fixture()
def notices():
    return []
