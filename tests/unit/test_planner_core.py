from __future__ import annotations

from collections import Counter
from copy import deepcopy
from datetime import date, datetime, timedelta

import pytest

from errors import InvalidConfigurationError, InvalidSubjectError
from models import ItemType, RemainingWorkload, Subject
from ordering import sort_subjects
from planner_core import (
    allocate_day,
    compute_days_until_exam,
    compute_urgency,
    generate_schedule,
)

START = date(2026, 1, 5)


def _study(items):
    return [i for i in items if i.type is ItemType.STUDY]


def _revisions(items):
    return [i for i in items if i.type is ItemType.REVISION]


def test_single_subject_scenario() -> None:
    subject = Subject(id=1, name="Algebra", difficulty=5, exam_date=START + timedelta(days=10), estimated_hours=4)
    items = generate_schedule([subject], START, max_daily_hours=6)

    study = _study(items)
    assert [(i.date, i.hours) for i in study] == [(START, 2), (START + timedelta(days=1), 2)]

    rev_days = sorted((i.date - START).days for i in _revisions(items))
    assert rev_days == [1, 2, 3, 4, 7, 8]
    assert all(i.hours == 0.5 for i in _revisions(items))

    # First study item is followed directly by its three revisions.
    assert [i.type for i in items[:4]] == [ItemType.STUDY] + [ItemType.REVISION] * 3


def test_empty_subjects_yield_empty_plan() -> None:
    assert generate_schedule([], START) == []


def test_harder_subject_goes_first_each_day() -> None:
    exam = START + timedelta(days=5)
    hard = Subject(id="hard", name="Hard", difficulty=5, exam_date=exam, estimated_hours=10)
    easy = Subject(id="easy", name="Easy", difficulty=1, exam_date=exam, estimated_hours=10)
    items = generate_schedule([easy, hard], START, max_daily_hours=6, horizon_days=5)

    by_day = {}
    for item in _study(items):
        by_day.setdefault(item.date, []).append(item.subject_id)
    for day, order in by_day.items():
        assert order[0] == "hard", day
        assert order == ["hard", "easy"]


def test_passed_exam_is_clamped_and_still_scheduled() -> None:
    subject = Subject(id=7, name="Late", difficulty=2, exam_date=START - timedelta(days=3), estimated_hours=6)
    assert compute_days_until_exam(subject.exam_date, START) == 1
    assert compute_urgency(subject, START) == 0.5

    items = generate_schedule([subject], START)
    assert [(i.date, i.hours) for i in _study(items)] == [
        (START, 2),
        (START + timedelta(days=1), 2),
        (START + timedelta(days=2), 2),
    ]
    assert _revisions(items) == []


def test_exam_today_is_clamped_to_one_day() -> None:
    assert compute_days_until_exam(START, START) == 1
    assert compute_days_until_exam(START + timedelta(days=4), START) == 4


def test_start_datetime_drops_time_of_day() -> None:
    subject = Subject(id=1, name="A", difficulty=1, exam_date=date(2026, 1, 3), estimated_hours=1)
    items = generate_schedule([subject], datetime(2026, 1, 1, 23, 59), horizon_days=1)
    assert items[0].date == date(2026, 1, 1)
    assert type(items[0].date) is date
    # 2026-01-02 precedes the exam; 2026-01-04 and 2026-01-08 do not.
    assert [i.date for i in _revisions(items)] == [date(2026, 1, 2)]


def test_daily_capacity_cuts_the_last_chunk() -> None:
    exam = START + timedelta(days=20)
    subjects = [Subject(id=i, name=f"S{i}", difficulty=3, exam_date=exam, estimated_hours=10) for i in range(3)]
    items = generate_schedule(subjects, START, max_daily_hours=3, horizon_days=1)
    assert [i.hours for i in _study(items)] == [2, 1]


def test_each_subject_gets_at_most_one_chunk_per_day() -> None:
    subject = Subject(id=1, name="Only", difficulty=3, exam_date=START + timedelta(days=30), estimated_hours=20)
    items = generate_schedule([subject], START, max_daily_hours=8, horizon_days=3)
    assert [i.hours for i in _study(items)] == [2, 2, 2]


def test_fractional_remaining_workload_is_used_up() -> None:
    subject = Subject(id=1, name="Half", difficulty=3, exam_date=START + timedelta(days=30), estimated_hours=2.5)
    items = generate_schedule([subject], START, horizon_days=5)
    assert [i.hours for i in _study(items)] == [2, 0.5]


def test_zero_hour_subject_is_never_scheduled() -> None:
    subject = Subject(id=1, name="Done", difficulty=3, exam_date=START + timedelta(days=30), estimated_hours=0)
    assert generate_schedule([subject], START) == []


def test_duplicate_ids_are_independent_entries() -> None:
    exam = START + timedelta(days=10)
    subjects = [
        Subject(id=1, name="Copy A", difficulty=3, exam_date=exam, estimated_hours=2),
        Subject(id=1, name="Copy B", difficulty=3, exam_date=exam, estimated_hours=2),
    ]
    items = generate_schedule(subjects, START)
    study = _study(items)
    assert sum(i.hours for i in study) == 4
    assert {i.subject_name for i in study} == {"Copy A", "Copy B"}


def test_duplicate_revisions_are_kept_by_default() -> None:
    subject = Subject(id=1, name="Long", difficulty=3, exam_date=START + timedelta(days=30), estimated_hours=10)
    items = generate_schedule([subject], START, horizon_days=5)
    counts = Counter(i.date for i in _revisions(items))
    # Study on day 0 and day 2 both schedule a revision on day 3.
    assert counts[START + timedelta(days=3)] == 2


def test_duplicate_revisions_can_be_suppressed() -> None:
    subject = Subject(id=1, name="Long", difficulty=3, exam_date=START + timedelta(days=30), estimated_hours=10)
    items = generate_schedule([subject], START, horizon_days=5, deduplicate_revisions=True)
    counts = Counter(i.date for i in _revisions(items))
    assert set(counts.values()) == {1}
    assert len(_study(items)) == 5


def test_allocate_day_is_replayable_from_a_workload_snapshot() -> None:
    exam = START + timedelta(days=8)
    subjects = sort_subjects(
        [
            Subject(id=1, name="A", difficulty=4, exam_date=exam, estimated_hours=5),
            Subject(id=2, name="B", difficulty=2, exam_date=exam + timedelta(days=3), estimated_hours=7),
        ]
    )
    workload = RemainingWorkload.from_subjects(subjects)
    allocate_day(subjects, workload, START, 6)
    snapshot = deepcopy(workload)

    day = START + timedelta(days=1)
    first = allocate_day(subjects, workload, day, 6)
    second = allocate_day(subjects, snapshot, day, 6)
    assert first == second
    assert workload == snapshot


def test_workload_never_goes_negative() -> None:
    workload = RemainingWorkload(hours={0: 1.0})
    assert workload.consume(0, 1.0) == 0.0
    with pytest.raises(ValueError):
        workload.consume(0, 0.5)
    assert workload.unfinished() == []


def test_identical_inputs_give_identical_output() -> None:
    subjects = [
        Subject(id=i, name=f"S{i}", difficulty=1 + i % 5, exam_date=START + timedelta(days=3 + 2 * i), estimated_hours=3 + i)
        for i in range(6)
    ]
    assert generate_schedule(subjects, START) == generate_schedule(subjects, START)


@pytest.mark.parametrize("difficulty", [0, -1, 6, 2.5, True])
def test_invalid_difficulty_is_rejected(difficulty) -> None:
    subject = Subject(id=1, name="Bad", difficulty=difficulty, exam_date=START, estimated_hours=2)
    with pytest.raises(InvalidSubjectError):
        generate_schedule([subject], START)


@pytest.mark.parametrize("hours", [-1, float("nan"), float("inf"), "4"])
def test_invalid_estimated_hours_are_rejected(hours) -> None:
    subject = Subject(id=1, name="Bad", difficulty=3, exam_date=START, estimated_hours=hours)
    with pytest.raises(InvalidSubjectError):
        generate_schedule([subject], START)


def test_exam_date_must_be_a_date() -> None:
    subject = Subject(id=1, name="Bad", difficulty=3, exam_date="2026-02-01", estimated_hours=2)
    with pytest.raises(InvalidSubjectError):
        generate_schedule([subject], START)


@pytest.mark.parametrize("max_daily_hours", [0, -2, float("nan"), None])
def test_invalid_daily_capacity_is_rejected(max_daily_hours) -> None:
    with pytest.raises(InvalidConfigurationError):
        generate_schedule([], START, max_daily_hours=max_daily_hours)


@pytest.mark.parametrize("horizon_days", [0, -5, 1.5])
def test_invalid_horizon_is_rejected(horizon_days) -> None:
    with pytest.raises(InvalidConfigurationError):
        generate_schedule([], START, horizon_days=horizon_days)


def test_errors_are_value_errors() -> None:
    assert issubclass(InvalidSubjectError, ValueError)
    assert issubclass(InvalidConfigurationError, ValueError)


def test_mixed_date_and_datetime_exam_dates() -> None:
    subjects = [
        Subject(id=1, name="Later", difficulty=3, exam_date=date(2026, 1, 20), estimated_hours=2),
        Subject(id=2, name="Sooner", difficulty=3, exam_date=datetime(2026, 1, 15, 9), estimated_hours=2),
    ]
    items = generate_schedule(subjects, START, horizon_days=1)
    assert [i.subject_id for i in _study(items)] == [2, 1]
    assert all(type(i.date) is date for i in items)
    sooner_revisions = [i.date for i in _revisions(items) if i.subject_id == 2]
    assert sooner_revisions == [START + timedelta(days=1), START + timedelta(days=3), START + timedelta(days=7)]


def test_exam_time_of_day_does_not_outrank_difficulty() -> None:
    subjects = [
        Subject(id="easy", name="Easy", difficulty=1, exam_date=datetime(2026, 1, 15, 8), estimated_hours=2),
        Subject(id="hard", name="Hard", difficulty=5, exam_date=datetime(2026, 1, 15, 20), estimated_hours=2),
    ]
    items = generate_schedule(subjects, START, horizon_days=1)
    assert [i.subject_id for i in _study(items)] == ["hard", "easy"]
