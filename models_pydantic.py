"""Pydantic models validating JSON payloads read by the subject store, plan store, session log and CLI config."""

import datetime as dt
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from models import ItemType, ScheduleItem, StudySession, Subject


def _parse_day(v):
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp, keeping only the date."""
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, dt.date):
        return v
    if isinstance(v, str):
        text = v.strip()
        try:
            return dt.date.fromisoformat(text[:10])
        except ValueError:
            raise ValueError(f"date must be in YYYY-MM-DD format, got: {v}")
    raise ValueError(f"date must be a string in YYYY-MM-DD format, got: {v!r}")


class SubjectPydantic(BaseModel):
    """A subject the learner is preparing an exam for."""

    id: Union[int, str] = Field(..., description="Stable identifier of the subject")
    name: str = Field(..., description="Display name of the subject", min_length=1)
    difficulty: int = Field(
        ...,
        description="How hard the subject is (1=easy, 5=very hard)",
        ge=1,
        le=5,
    )
    exam_date: dt.date = Field(..., description="Exam date in YYYY-MM-DD format")
    estimated_hours: float = Field(
        ...,
        description="Total hours of study needed before the exam",
        ge=0,
    )

    @field_validator("exam_date", mode="before")
    @classmethod
    def validate_exam_date(cls, v) -> dt.date:
        return _parse_day(v)

    def to_subject(self) -> Subject:
        return Subject(
            id=self.id,
            name=self.name,
            difficulty=self.difficulty,
            exam_date=self.exam_date,
            estimated_hours=self.estimated_hours,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1,
                "name": "Linear Algebra",
                "difficulty": 4,
                "exam_date": "2025-03-15",
                "estimated_hours": 12,
            }
        }


class ScheduleItemPydantic(BaseModel):
    """One stored plan entry."""

    date: dt.date
    subject_id: Union[int, str]
    subject_name: str
    hours: float = Field(..., gt=0)
    type: Literal["study", "revision"]

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v) -> dt.date:
        return _parse_day(v)

    def to_item(self) -> ScheduleItem:
        return ScheduleItem(
            date=self.date,
            subject_id=self.subject_id,
            subject_name=self.subject_name,
            hours=self.hours,
            type=ItemType(self.type),
        )


class StudySessionPydantic(BaseModel):
    """Hours the learner actually completed for a subject on a day."""

    subject_id: Union[int, str]
    date: dt.date
    hours_completed: float = Field(..., gt=0)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v) -> dt.date:
        return _parse_day(v)

    def to_session(self) -> StudySession:
        return StudySession(subject_id=self.subject_id, date=self.date, hours_completed=self.hours_completed)


class PlannerConfigPydantic(BaseModel):
    """Merged CLI configuration."""

    start_date: dt.date
    max_daily_hours: float = Field(6.0, gt=0)
    horizon_days: int = Field(30, ge=1)
    deduplicate_revisions: bool = False
    data_dir: str = "Planner_Data"
    subjects_dir: str = "Subjects_Input"
    user_id: str = Field("local", min_length=1, pattern=r"^[A-Za-z0-9_.-]+$")
    log_level: str = "INFO"
    output: Optional[str] = None

    @field_validator("start_date", mode="before")
    @classmethod
    def validate_start_date(cls, v) -> dt.date:
        return _parse_day(v)

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        if v in {".", ".."}:
            raise ValueError(f"user_id cannot be {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level
