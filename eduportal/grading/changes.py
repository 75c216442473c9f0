from eduportal.grading.entities import GradeChange
from eduportal.grading.store import GradeRecordStore


class DirtyTracker:
    def __init__(self, store: GradeRecordStore):
        self._store = store

    def dirty_ids(self) -> list[int]:
        return [r.id for r in self._store.records if r.is_dirty]

    @property
    def has_changes(self) -> bool:
        return any(r.is_dirty for r in self._store.records)

    def collect_changes(self) -> list[GradeChange]:
        # store order, only records with unsaved edits
        return [
            GradeChange(record_id=r.id, grade=r.grade, feedback=r.feedback)
            for r in self._store.records
            if r.is_dirty
        ]

    def mark_clean(self, record_ids=None) -> None:
        wanted = None if record_ids is None else set(record_ids)
        for record in self._store.records:
            if wanted is None or record.id in wanted:
                record.is_dirty = False
