import logging
from typing import Iterable

from eduportal.grading.entities import GradeRecord, TaskInfo
from eduportal.grading.errors import GatewayError, GradingError, LoadError
from eduportal.grading.gateway import GradingGateway

logger = logging.getLogger(__name__)


class GradeRecordStore:
    """In-memory grade records for one task, keyed by record id."""

    def __init__(self, gateway: GradingGateway):
        self._gateway = gateway
        self._task: TaskInfo | None = None
        self._records: dict[int, GradeRecord] = {}

    @property
    def loaded(self) -> bool:
        return self._task is not None

    @property
    def task(self) -> TaskInfo:
        if self._task is None:
            raise GradingError("No task loaded")
        return self._task

    @property
    def task_id(self) -> int:
        return self.task.id

    @property
    def records(self) -> list[GradeRecord]:
        return list(self._records.values())

    @property
    def submission_count(self) -> int:
        return sum(1 for r in self._records.values() if r.submission is not None)

    def get(self, record_id: int) -> GradeRecord | None:
        return self._records.get(record_id)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    async def load(self, task_id: int) -> None:
        try:
            dataset = await self._gateway.fetch_dataset(task_id)
        except GatewayError as exc:
            logger.warning("Loading grades for task %s failed: %s", task_id, exc)
            raise LoadError(f"Failed to fetch grading data for task {task_id}: {exc}") from exc

        if dataset.task.id != task_id:
            raise LoadError(f"Expected task {task_id}, got task {dataset.task.id}")

        for record in dataset.grades:
            record.is_dirty = False

        self.replace_all(dataset.grades, task=dataset.task)
        logger.info("Loaded %d grade record(s) for task %s", len(self._records), task_id)

    async def reload(self) -> None:
        await self.load(self.task_id)

    def replace_all(self, records: Iterable[GradeRecord], task: TaskInfo | None = None) -> None:
        records = list(records)
        max_points = (task or self.task).max_points

        by_id: dict[int, GradeRecord] = {}
        students: set[int] = set()
        for record in records:
            if record.id in by_id:
                raise LoadError(f"Duplicate grade record {record.id}")
            if record.student.id in students:
                raise LoadError(f"Student {record.student.id} has more than one grade record")
            if record.grade is not None and not 0 <= record.grade <= max_points:
                raise LoadError(
                    f"Grade record {record.id} has grade {record.grade:g} outside 0..{max_points:g}"
                )
            by_id[record.id] = record
            students.add(record.student.id)

        # swap only once the new set is known to be valid
        if task is not None:
            self._task = task
        self._records = by_id

    def clear(self) -> None:
        self._task = None
        self._records = {}
