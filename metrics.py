from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import asdict
from datetime import date
from typing import Dict, Sequence

from models import ItemType, PlanMetrics, ScheduleItem, Subject, SubjectId

EPSILON = 1e-9


def compute_plan_metrics(
    items: Sequence[ScheduleItem],
    subjects: Sequence[Subject],
    max_daily_hours: float,
) -> PlanMetrics:
    day_study_hours = study_hours_by_day(items)
    study_by_subject = study_hours_by_subject(items)
    total_study = sum(day_study_hours.values())
    total_revision = sum(item.hours for item in items if item.type is ItemType.REVISION)

    estimated_by_subject: Dict[SubjectId, float] = defaultdict(float)
    for subject in subjects:
        estimated_by_subject[subject.id] += subject.estimated_hours
    total_estimated = sum(estimated_by_subject.values())

    unfinished = sum(
        1
        for subject_id, estimated in estimated_by_subject.items()
        if study_by_subject.get(subject_id, 0.0) + EPSILON < estimated
    )
    coverage = total_study / total_estimated if total_estimated > EPSILON else 1.0

    capacity_violations = sum(1 for hours in day_study_hours.values() if hours > max_daily_hours + EPSILON)

    return PlanMetrics(
        total_study_hours=total_study,
        total_revision_hours=total_revision,
        study_days=len(day_study_hours),
        unfinished_subjects=unfinished,
        study_coverage_pct=coverage,
        capacity_violations=capacity_violations,
        revision_cutoff_violations=_count_revision_cutoff_violations(items, subjects),
        duplicate_revisions=_count_duplicate_revisions(items),
    )


def _count_revision_cutoff_violations(items: Sequence[ScheduleItem], subjects: Sequence[Subject]) -> int:
    # With duplicate ids the latest exam wins; this is an audit, not the allocator's cutoff.
    exam_dates: Dict[SubjectId, date] = {}
    for subject in subjects:
        current = exam_dates.get(subject.id)
        if current is None or subject.exam_date > current:
            exam_dates[subject.id] = subject.exam_date

    violations = 0
    for item in items:
        if item.type is not ItemType.REVISION:
            continue
        exam_date = exam_dates.get(item.subject_id)
        if exam_date is not None and item.date >= exam_date:
            violations += 1
    return violations


def _count_duplicate_revisions(items: Sequence[ScheduleItem]) -> int:
    counts = Counter((item.subject_id, item.date) for item in items if item.type is ItemType.REVISION)
    return sum(count - 1 for count in counts.values() if count > 1)


def study_hours_by_day(items: Sequence[ScheduleItem]) -> Dict[date, float]:
    totals: Dict[date, float] = defaultdict(float)
    for item in items:
        if item.type is ItemType.STUDY:
            totals[item.date] += item.hours
    return dict(totals)


def study_hours_by_subject(items: Sequence[ScheduleItem]) -> Dict[SubjectId, float]:
    totals: Dict[SubjectId, float] = defaultdict(float)
    for item in items:
        if item.type is ItemType.STUDY:
            totals[item.subject_id] += item.hours
    return dict(totals)


def metrics_to_dict(metrics: PlanMetrics) -> Dict[str, float]:
    return asdict(metrics)

