from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional, Set, Tuple

from models import ItemType, ScheduleItem, Subject, to_day

logger = logging.getLogger(__name__)

REVISION_OFFSETS_DAYS = (1, 3, 7)
REVISION_HOURS = 0.5


def schedule_revisions(
    subject: Subject,
    study_date: date,
    seen: Optional[Set[Tuple[int, date]]] = None,
    entry: int = 0,
) -> List[ScheduleItem]:
    """Spaced follow-ups for one study chunk, cut off at the subject's exam date.

    With ``seen`` given, a (entry, date) pair already in the set is skipped and
    new pairs are added to it; without it every revision is emitted, even if an
    earlier chunk already produced one for the same date.
    """
    items: List[ScheduleItem] = []
    for offset in REVISION_OFFSETS_DAYS:
        rev_date = study_date + timedelta(days=offset)
        if rev_date >= to_day(subject.exam_date):
            continue
        if seen is not None:
            if (entry, rev_date) in seen:
                logger.debug("Skipping duplicate revision for %s on %s", subject.name, rev_date)
                continue
            seen.add((entry, rev_date))
        items.append(
            ScheduleItem(
                date=rev_date,
                subject_id=subject.id,
                subject_name=subject.name,
                hours=REVISION_HOURS,
                type=ItemType.REVISION,
            )
        )
    return items
