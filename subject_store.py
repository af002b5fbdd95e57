from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence

from pydantic import ValidationError

from errors import InvalidSubjectError
from models import Subject, SubjectId
from models_pydantic import SubjectPydantic
from plan_store import user_file, write_json_atomic
from subject_loader import load_subjects_from_json, subjects_to_payload

logger = logging.getLogger(__name__)


class SubjectStore:
    """Each learner's subjects, kept as one JSON file per user under ``root/subjects``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, user_id: str) -> Path:
        return user_file(self.root, "subjects", user_id)

    def _write(self, user_id: str, subjects: Sequence[Subject]) -> None:
        payload = subjects_to_payload(list(subjects))
        payload["user_id"] = user_id
        write_json_atomic(self._path(user_id), payload)

    def list_subjects(self, user_id: str) -> List[Subject]:
        path = self._path(user_id)
        if not path.exists():
            return []
        return load_subjects_from_json(path)

    def add_subject(self, user_id: str, data: Dict) -> Subject:
        """Validate ``data`` and append it; without an ``id`` the next free integer id is assigned."""
        subjects = self.list_subjects(user_id)
        raw = dict(data)
        if raw.get("id") is None:
            raw["id"] = _next_id(subjects)
        try:
            subject = SubjectPydantic.model_validate(raw).to_subject()
        except ValidationError as exc:
            raise InvalidSubjectError(f"Invalid subject {raw.get('name') or raw['id']}: {exc}") from exc
        if any(existing.id == subject.id for existing in subjects):
            raise InvalidSubjectError(f"Subject id {subject.id!r} already exists for {user_id}")

        subjects.append(subject)
        self._write(user_id, subjects)
        logger.info("Added subject %s (%s) for %s", subject.id, subject.name, user_id)
        return subject

    def delete_subject(self, user_id: str, subject_id: SubjectId) -> bool:
        subjects = self.list_subjects(user_id)
        kept = [s for s in subjects if s.id != subject_id]
        if len(kept) == len(subjects):
            return False
        self._write(user_id, kept)
        logger.info("Deleted subject %s for %s", subject_id, user_id)
        return True

    def import_subjects(self, user_id: str, incoming: Sequence[Subject]) -> int:
        """Add subjects whose id is not stored yet; returns how many were added."""
        subjects = self.list_subjects(user_id)
        known = {s.id for s in subjects}
        added = 0
        for subject in incoming:
            if subject.id in known:
                logger.warning("Skipping subject %s: id already stored for %s", subject.id, user_id)
                continue
            subjects.append(subject)
            known.add(subject.id)
            added += 1
        if added:
            self._write(user_id, subjects)
        logger.info("Imported %d subjects for %s", added, user_id)
        return added


def _next_id(subjects: Sequence[Subject]) -> int:
    int_ids = [s.id for s in subjects if isinstance(s.id, int)]
    return max(int_ids, default=0) + 1
