from __future__ import annotations

from typing import Sequence

import pandas as pd

from models import ScheduleItem, StudySession, Subject

PROGRESS_COLUMNS = ["subject_id", "name", "estimated_hours", "completed_hours", "remaining_hours", "completion_pct"]
PLAN_COLUMNS = ["date", "subject_id", "subject_name", "hours", "type"]
SUBJECT_COLUMNS = ["id", "name", "difficulty", "exam_date", "estimated_hours"]


def compute_progress(subjects: Sequence[Subject], sessions: Sequence[StudySession]) -> pd.DataFrame:
    """Completed vs. estimated hours per subject; subjects without sessions report zero."""
    if not subjects:
        return pd.DataFrame(columns=PROGRESS_COLUMNS)

    subject_df = pd.DataFrame(
        {
            "subject_id": [s.id for s in subjects],
            "name": [s.name for s in subjects],
            "estimated_hours": [float(s.estimated_hours) for s in subjects],
        }
    )
    known_ids = set(subject_df["subject_id"])
    completed = {}
    for session in sessions:
        if session.subject_id in known_ids:
            completed[session.subject_id] = completed.get(session.subject_id, 0.0) + session.hours_completed

    df = subject_df.copy()
    df["completed_hours"] = df["subject_id"].map(completed).fillna(0.0).astype(float)
    df["remaining_hours"] = (df["estimated_hours"] - df["completed_hours"]).clip(lower=0.0)
    est = df["estimated_hours"].where(df["estimated_hours"] > 0)
    df["completion_pct"] = (df["completed_hours"] / est).clip(upper=1.0).fillna(1.0)
    return df[PROGRESS_COLUMNS]


def plan_frame(items: Sequence[ScheduleItem]) -> pd.DataFrame:
    if not items:
        return pd.DataFrame(columns=PLAN_COLUMNS)
    rows = [
        {
            "date": item.date.isoformat(),
            "subject_id": item.subject_id,
            "subject_name": item.subject_name,
            "hours": item.hours,
            "type": item.type.value,
        }
        for item in items
    ]
    return pd.DataFrame(rows, columns=PLAN_COLUMNS).sort_values("date", kind="stable").reset_index(drop=True)


def daily_totals(items: Sequence[ScheduleItem]) -> pd.DataFrame:
    """Hours per date split into study and revision columns."""
    df = plan_frame(items)
    if df.empty:
        return pd.DataFrame(columns=["study", "revision"])
    pivot = df.pivot_table(index="date", columns="type", values="hours", aggfunc="sum", fill_value=0.0)
    return pivot.reindex(columns=["study", "revision"], fill_value=0.0)


def subjects_frame(subjects: Sequence[Subject]) -> pd.DataFrame:
    rows = [
        {
            "id": s.id,
            "name": s.name,
            "difficulty": s.difficulty,
            "exam_date": s.exam_date.isoformat(),
            "estimated_hours": s.estimated_hours,
        }
        for s in subjects
    ]
    return pd.DataFrame(rows, columns=SUBJECT_COLUMNS)
