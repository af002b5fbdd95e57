from __future__ import annotations

from typing import List, Sequence

from models import Subject, to_day


def sort_subjects(subjects: Sequence[Subject]) -> List[Subject]:
    """Return a new list ordered by exam date, then by difficulty (hardest first).

    Merge sort, so subjects with the same exam date and difficulty keep their
    input order.
    """
    items = list(subjects)
    if len(items) <= 1:
        return items

    mid = len(items) // 2
    left = sort_subjects(items[:mid])
    right = sort_subjects(items[mid:])
    return _merge(left, right)


def _precedes(a: Subject, b: Subject) -> bool:
    a_day, b_day = to_day(a.exam_date), to_day(b.exam_date)
    if a_day != b_day:
        return a_day < b_day
    return a.difficulty > b.difficulty


def _merge(left: List[Subject], right: List[Subject]) -> List[Subject]:
    merged: List[Subject] = []
    i = j = 0
    while i < len(left) and j < len(right):
        # Take from the right run only when it strictly precedes; keeps the sort stable.
        if _precedes(right[j], left[i]):
            merged.append(right[j])
            j += 1
        else:
            merged.append(left[i])
            i += 1
    merged.extend(left[i:])
    merged.extend(right[j:])
    return merged
