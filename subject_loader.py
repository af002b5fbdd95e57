from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from errors import InvalidSubjectError
from models import Subject
from models_pydantic import SubjectPydantic

logger = logging.getLogger(__name__)


def _parse_subject(data: dict) -> Subject:
    try:
        return SubjectPydantic.model_validate(data).to_subject()
    except ValidationError as exc:
        label = data.get("name") or data.get("id") or "<unnamed>"
        raise InvalidSubjectError(f"Invalid subject {label}: {exc}") from exc


def load_subjects_from_json(path: Path) -> List[Subject]:
    with path.open("r", encoding="utf-8") as f:
        payload = json.load(f)

    if isinstance(payload, dict) and isinstance(payload.get("subjects"), list):
        subjects = [_parse_subject(item) for item in payload["subjects"]]
    elif isinstance(payload, list):
        subjects = [_parse_subject(item) for item in payload]
    else:
        subjects = [_parse_subject(payload)]

    logger.info("Loaded %d subjects from %s", len(subjects), path)
    return subjects


def load_subjects_from_directory(directory: Path) -> List[Subject]:
    subjects: List[Subject] = []
    if not directory.is_dir():
        logger.warning("Subjects directory %s does not exist", directory)
        return subjects
    for json_path in sorted(directory.glob("*.json")):
        try:
            subjects.extend(load_subjects_from_json(json_path))
        except (OSError, ValueError) as exc:
            logger.exception("Failed to load %s: %s", json_path, exc)
    return subjects


def subjects_to_payload(subjects: List[Subject]) -> dict:
    return {
        "subjects": [
            {
                "id": s.id,
                "name": s.name,
                "difficulty": s.difficulty,
                "exam_date": s.exam_date.isoformat(),
                "estimated_hours": s.estimated_hours,
            }
            for s in subjects
        ]
    }
