from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from models import StudySession
from models_pydantic import StudySessionPydantic
from plan_store import user_file, write_json_atomic

logger = logging.getLogger(__name__)


class SessionLog:
    """Completed study sessions per user, kept as a JSON list under ``root/sessions``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, user_id: str) -> Path:
        return user_file(self.root, "sessions", user_id)

    def _read_raw(self, user_id: str) -> List[dict]:
        path = self._path(user_id)
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as f:
            return json.load(f).get("sessions", [])

    def record(self, user_id: str, session: StudySession) -> None:
        raw = self._read_raw(user_id)
        raw.append(
            {
                "subject_id": session.subject_id,
                "date": session.date.isoformat(),
                "hours_completed": session.hours_completed,
            }
        )
        write_json_atomic(self._path(user_id), {"user_id": user_id, "sessions": raw})
        logger.info("Recorded %.2fh for subject %s on %s", session.hours_completed, session.subject_id, session.date)

    def sessions(self, user_id: str) -> List[StudySession]:
        return [StudySessionPydantic.model_validate(raw).to_session() for raw in self._read_raw(user_id)]
