from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional, Sequence, Set, Tuple

from errors import InvalidConfigurationError, InvalidSubjectError
from models import ItemType, RemainingWorkload, ScheduleItem, Subject, to_day
from ordering import sort_subjects
from priority_queue import MinHeap
from revision import schedule_revisions

logger = logging.getLogger(__name__)

DEFAULT_MAX_DAILY_HOURS = 6.0
DEFAULT_HORIZON_DAYS = 30
MAX_CHUNK_HOURS = 2.0
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


def compute_days_until_exam(exam_date: date, current_date: date) -> int:
    # Floors at 1: subjects whose exam is today or already passed stay schedulable.
    return max(1, (to_day(exam_date) - to_day(current_date)).days)


def compute_urgency(subject: Subject, current_date: date) -> float:
    """Lower is more urgent: fewer days left and harder subjects come first."""
    return compute_days_until_exam(subject.exam_date, current_date) / subject.difficulty


def validate_subjects(subjects: Sequence[Subject]) -> None:
    for subject in subjects:
        difficulty = subject.difficulty
        if isinstance(difficulty, bool) or not isinstance(difficulty, int):
            raise InvalidSubjectError(f"Subject {subject.name!r} ({subject.id}): difficulty must be an integer, got {difficulty!r}")
        if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
            raise InvalidSubjectError(
                f"Subject {subject.name!r} ({subject.id}): difficulty must be between "
                f"{MIN_DIFFICULTY} and {MAX_DIFFICULTY}, got {difficulty}"
            )
        hours = subject.estimated_hours
        if isinstance(hours, bool) or not isinstance(hours, (int, float)) or not math.isfinite(hours) or hours < 0:
            raise InvalidSubjectError(f"Subject {subject.name!r} ({subject.id}): estimated_hours must be a non-negative number, got {hours!r}")
        if not isinstance(subject.exam_date, date):
            raise InvalidSubjectError(f"Subject {subject.name!r} ({subject.id}): exam_date must be a date, got {subject.exam_date!r}")


def validate_run_config(max_daily_hours: float, horizon_days: int) -> None:
    if (
        isinstance(max_daily_hours, bool)
        or not isinstance(max_daily_hours, (int, float))
        or not math.isfinite(max_daily_hours)
        or max_daily_hours <= 0
    ):
        raise InvalidConfigurationError(f"max_daily_hours must be a positive number, got {max_daily_hours!r}")
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int) or horizon_days < 1:
        raise InvalidConfigurationError(f"horizon_days must be a positive integer, got {horizon_days!r}")


def allocate_day(
    subjects: Sequence[Subject],
    workload: RemainingWorkload,
    current_date: date,
    max_daily_hours: float = DEFAULT_MAX_DAILY_HOURS,
    seen_revisions: Optional[Set[Tuple[int, date]]] = None,
) -> List[ScheduleItem]:
    """Allocate one day of study from the workload snapshot, mutating ``workload``.

    ``subjects`` must be in the same order the workload was built from. A fresh
    heap is built for the day; every subject is drawn at most once.
    """
    current_date = to_day(current_date)
    pq: MinHeap[Tuple[int, Subject]] = MinHeap()
    for entry, subject in enumerate(subjects):
        if workload.remaining(entry) > 0:
            pq.insert(compute_urgency(subject, current_date), (entry, subject))

    items: List[ScheduleItem] = []
    hours_today = 0.0
    while not pq.is_empty() and hours_today < max_daily_hours:
        entry, subject = pq.extract_min()
        chunk = min(MAX_CHUNK_HOURS, workload.remaining(entry), max_daily_hours - hours_today)
        if chunk <= 0:
            continue

        items.append(
            ScheduleItem(
                date=current_date,
                subject_id=subject.id,
                subject_name=subject.name,
                hours=chunk,
                type=ItemType.STUDY,
            )
        )
        workload.consume(entry, chunk)
        hours_today += chunk
        items.extend(schedule_revisions(subject, current_date, seen=seen_revisions, entry=entry))

    logger.debug("%s: allocated %.2fh across %d study chunks", current_date, hours_today, sum(1 for i in items if i.type is ItemType.STUDY))
    return items


def generate_schedule(
    subjects: Sequence[Subject],
    start_date: date,
    max_daily_hours: float = DEFAULT_MAX_DAILY_HOURS,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    deduplicate_revisions: bool = False,
) -> List[ScheduleItem]:
    """Plan study and revision sessions for ``horizon_days`` days from ``start_date``.

    Bounded-horizon greedy heuristic: each day the most urgent subjects
    (days until exam / difficulty) receive chunks of at most two hours until
    the daily capacity is used. Every study chunk schedules revisions at +1,
    +3 and +7 days while they fall before the exam. Revisions are not counted
    against the daily capacity.

    Raises InvalidSubjectError or InvalidConfigurationError before any
    allocation when an input would make the arithmetic meaningless. An empty
    subject list yields an empty plan.
    """
    validate_run_config(max_daily_hours, horizon_days)
    validate_subjects(subjects)
    if not subjects:
        return []

    start = to_day(start_date)
    ordered = sort_subjects([replace(s, exam_date=to_day(s.exam_date)) for s in subjects])
    workload = RemainingWorkload.from_subjects(ordered)
    seen: Optional[Set[Tuple[int, date]]] = set() if deduplicate_revisions else None

    schedule: List[ScheduleItem] = []
    for d in range(horizon_days):
        current = start + timedelta(days=d)
        schedule.extend(allocate_day(ordered, workload, current, max_daily_hours, seen_revisions=seen))

    unfinished = workload.unfinished()
    if unfinished:
        logger.info(
            "%d of %d subjects still have %.1fh unallocated after %d days",
            len(unfinished),
            len(ordered),
            workload.total(),
            horizon_days,
        )
    return schedule
