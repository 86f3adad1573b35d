from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from survey_core.models import Entry, Settings, clamp_score, new_entry_id
from survey_core.numbers import to_float_or_none
from survey_core.store import RecordStore

logger = logging.getLogger(__name__)

YEAR_MIN = 1900
YEAR_MAX = 2200


@dataclass
class EntryForm:
    """Raw widget values for one entry, before validation."""

    course: str = ""
    year: object = None
    month: object = None
    participants: object = None
    scores: Dict[str, object] = field(default_factory=dict)


def form_from_entry(entry: Entry) -> EntryForm:
    return EntryForm(
        course=entry.course,
        year=entry.year,
        month=entry.month,
        participants=entry.participants,
        scores=dict(entry.scores),
    )


def widget_defaults(form: EntryForm, today_year: int, today_month: int) -> Dict[str, int]:
    """Pre-fill values for the year/month/participants inputs, kept inside the widget bounds.

    Imported entries may carry any whole year and participants <= 0; the
    widgets reject such values, so they are pulled into range here and
    ``build_entry`` decides on submit.
    """
    year = _whole(form.year)
    month = _whole(form.month)
    participants = _whole(form.participants)
    return {
        "year": min(max(year if year is not None else today_year, YEAR_MIN), YEAR_MAX),
        "month": month if month is not None and 1 <= month <= 12 else today_month,
        "participants": max(participants or 0, 0),
    }


def parse_score(value: object, settings: Settings) -> Optional[float]:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return clamp_score(to_float_or_none(value), settings.scale_min, settings.scale_max)


def _whole(value: object) -> Optional[int]:
    f = to_float_or_none(value)
    if f is None or not f.is_integer():
        return None
    return int(f)


def build_entry(form: EntryForm, settings: Settings, entry_id: Optional[str] = None) -> Optional[Entry]:
    """Validate a form; returns None when the course is blank or participants is not positive."""
    course = (form.course or "").strip()
    participants = _whole(form.participants)
    year = _whole(form.year)
    month = _whole(form.month)
    if not course or participants is None or participants <= 0:
        return None
    if year is None or month is None or not 1 <= month <= 12:
        return None

    return Entry(
        id=entry_id or new_entry_id(),
        course=course,
        year=year,
        month=month,
        participants=participants,
        scores={qid: parse_score(form.scores.get(qid), settings) for qid in settings.question_ids},
    )


def submit(store: RecordStore, form: EntryForm, entry_id: Optional[str] = None) -> Optional[Entry]:
    entry = build_entry(form, store.settings, entry_id=entry_id)
    if entry is None:
        logger.info("Rejected entry form for course %r", form.course)
        return None
    return store.upsert(entry)
