from eduportal.db.base_class import Base
from eduportal.db.session import engine

# import models so SQLAlchemy registers them
from eduportal.models import course, grade, submission, task, user  # noqa: F401


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
