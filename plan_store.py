from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Sequence

from models import ScheduleItem, SubjectId
from models_pydantic import ScheduleItemPydantic

logger = logging.getLogger(__name__)

USER_ID_PATTERN = r"^[A-Za-z0-9_.-]+$"
_USER_ID_RE = re.compile(USER_ID_PATTERN)


def user_file(root: Path, kind: str, user_id: str) -> Path:
    """Per-user JSON file under ``root/kind``; ids that could escape the directory are refused."""
    if not _USER_ID_RE.match(user_id) or user_id in {".", ".."}:
        raise ValueError(f"invalid user id: {user_id!r}")
    return root / kind / f"{user_id}.json"


def item_to_dict(item: ScheduleItem) -> Dict:
    return {
        "date": item.date.isoformat(),
        "subject_id": item.subject_id,
        "subject_name": item.subject_name,
        "hours": item.hours,
        "type": item.type.value,
    }


def build_plan_output(user_id: str, items: Sequence[ScheduleItem]) -> Dict:
    return {
        "user_id": user_id,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "count": len(items),
        "items": [item_to_dict(item) for item in items],
    }


def write_json_atomic(path: Path, payload: Dict) -> None:
    """Write ``payload`` next to ``path`` and swap it in, so readers see the old file or the new one."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)


class PlanStore:
    """One JSON file per user under ``root``; a new plan always replaces the old one."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, user_id: str) -> Path:
        return user_file(self.root, "plans", user_id)

    def replace_plan(self, user_id: str, items: Sequence[ScheduleItem]) -> int:
        path = self._path(user_id)
        write_json_atomic(path, build_plan_output(user_id, items))
        logger.info("Stored %d plan items for %s at %s", len(items), user_id, path)
        return len(items)

    def load_plan(self, user_id: str) -> List[ScheduleItem]:
        path = self._path(user_id)
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
        items = [ScheduleItemPydantic.model_validate(raw).to_item() for raw in payload.get("items", [])]
        # sorted() is stable, so items on the same date keep generation order.
        return sorted(items, key=lambda item: item.date)

    def remove_subject(self, user_id: str, subject_id: SubjectId) -> int:
        """Drop every stored item of ``subject_id``; returns how many were removed."""
        items = self.load_plan(user_id)
        kept = [item for item in items if item.subject_id != subject_id]
        removed = len(items) - len(kept)
        if removed:
            self.replace_plan(user_id, kept)
        return removed
