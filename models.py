from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Union

SubjectId = Union[int, str]


def to_day(value: date) -> date:
    # datetime is a subclass of date; drop the time of day so day arithmetic stays whole.
    if isinstance(value, datetime):
        return value.date()
    return value


class ItemType(str, Enum):
    STUDY = "study"
    REVISION = "revision"


@dataclass(frozen=True)
class Subject:
    id: SubjectId
    name: str
    difficulty: int  # 1 (easy) .. 5 (hard)
    exam_date: date
    estimated_hours: float


@dataclass(frozen=True)
class ScheduleItem:
    date: date
    subject_id: SubjectId
    subject_name: str
    hours: float
    type: ItemType


@dataclass(frozen=True)
class StudySession:
    subject_id: SubjectId
    date: date
    hours_completed: float


@dataclass
class RemainingWorkload:
    """Hours still unallocated per subject entry for a single scheduling run.

    Entries are keyed by the position of the subject in the run's ordered
    candidate list, so two subjects sharing an id stay independent.
    """

    hours: Dict[int, float] = field(default_factory=dict)

    @classmethod
    def from_subjects(cls, subjects: Iterable[Subject]) -> "RemainingWorkload":
        return cls(hours={idx: float(s.estimated_hours) for idx, s in enumerate(subjects)})

    def remaining(self, entry: int) -> float:
        return self.hours.get(entry, 0.0)

    def consume(self, entry: int, amount: float) -> float:
        current = self.remaining(entry)
        if amount < 0 or amount > current:
            raise ValueError(f"cannot consume {amount}h from entry {entry} with {current}h left")
        self.hours[entry] = current - amount
        return self.hours[entry]

    def total(self) -> float:
        return sum(self.hours.values())

    def unfinished(self) -> List[int]:
        return [entry for entry, left in self.hours.items() if left > 0]


@dataclass
class PlanMetrics:
    total_study_hours: float
    total_revision_hours: float
    study_days: int
    unfinished_subjects: int
    study_coverage_pct: float
    capacity_violations: int
    revision_cutoff_violations: int
    duplicate_revisions: int
