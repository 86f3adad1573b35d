from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from survey_core.config import DEFAULT_SCALE_MAX, DEFAULT_SCALE_MIN

BASE_COLUMNS = ["id", "course", "year", "month", "participants"]


@dataclass(frozen=True)
class Question:
    id: str
    label: str


DEFAULT_QUESTIONS: Tuple[Question, ...] = (
    Question("q1", "Course content"),
    Question("q2", "Instructor"),
    Question("q3", "Materials"),
    Question("q4", "Organization"),
    Question("q5", "Overall satisfaction"),
)


@dataclass(frozen=True)
class Settings:
    questions: List[Question] = field(default_factory=lambda: list(DEFAULT_QUESTIONS))
    scale_min: float = DEFAULT_SCALE_MIN
    scale_max: float = DEFAULT_SCALE_MAX

    @property
    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]

    def label_for(self, question_id: str) -> str:
        for q in self.questions:
            if q.id == question_id:
                return q.label
        return question_id

    def display_labels(self) -> Dict[str, str]:
        """Question id -> display title; repeated labels get their id appended so titles stay distinct."""
        counts: Dict[str, int] = {}
        for q in self.questions:
            counts[q.label] = counts.get(q.label, 0) + 1
        return {q.id: q.label if counts[q.label] == 1 else f"{q.label} ({q.id})" for q in self.questions}

    def with_label(self, question_id: str, label: str) -> "Settings":
        questions = [Question(q.id, label) if q.id == question_id else q for q in self.questions]
        return replace(self, questions=questions)


@dataclass(frozen=True)
class Entry:
    id: str
    course: str
    year: int
    month: int
    participants: int
    scores: Dict[str, Optional[float]] = field(default_factory=dict)

    @property
    def period(self) -> Tuple[int, int]:
        return self.year, self.month

    def score(self, question_id: str) -> Optional[float]:
        return self.scores.get(question_id)


def new_entry_id() -> str:
    return uuid.uuid4().hex


def default_settings(scale_min: float = DEFAULT_SCALE_MIN, scale_max: float = DEFAULT_SCALE_MAX) -> Settings:
    return Settings(questions=list(DEFAULT_QUESTIONS), scale_min=float(scale_min), scale_max=float(scale_max))


def clamp_score(value: Optional[float], scale_min: float, scale_max: float) -> Optional[float]:
    if value is None:
        return None
    return max(scale_min, min(scale_max, float(value)))


def period_label(year: int, month: int) -> str:
    return f"{int(year):04d}-{int(month):02d}"
