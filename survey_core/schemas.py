from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from survey_core.config import DEFAULT_SCALE_MAX, DEFAULT_SCALE_MIN
from survey_core.models import Entry, Question, Settings


class QuestionModel(BaseModel):
    id: str = Field(min_length=1)
    label: str


class SettingsModel(BaseModel):
    questions: List[QuestionModel] = Field(min_length=1)
    scale_min: float = DEFAULT_SCALE_MIN
    scale_max: float = DEFAULT_SCALE_MAX

    @classmethod
    def from_settings(cls, settings: Settings) -> "SettingsModel":
        return cls(
            questions=[QuestionModel(id=q.id, label=q.label) for q in settings.questions],
            scale_min=settings.scale_min,
            scale_max=settings.scale_max,
        )

    def to_settings(self) -> Settings:
        return Settings(
            questions=[Question(q.id, q.label) for q in self.questions],
            scale_min=self.scale_min,
            scale_max=self.scale_max,
        )


class EntryModel(BaseModel):
    id: str = Field(min_length=1)
    course: str
    year: int
    month: int = Field(ge=1, le=12)
    participants: int
    scores: Dict[str, Optional[float]] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, entry: Entry) -> "EntryModel":
        return cls(
            id=entry.id,
            course=entry.course,
            year=entry.year,
            month=entry.month,
            participants=entry.participants,
            scores=dict(entry.scores),
        )

    def to_entry(self) -> Entry:
        return Entry(
            id=self.id,
            course=self.course,
            year=self.year,
            month=self.month,
            participants=self.participants,
            scores=dict(self.scores),
        )
