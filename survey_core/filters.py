from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from survey_core.models import Entry

ALL_YEARS = "All Years"
ALL_COURSES = "All Courses"


@dataclass(frozen=True)
class DashboardFilters:
    year: Optional[int] = None
    course: Optional[str] = None


def _as_int(value: object) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def normalize_filters(raw: dict) -> DashboardFilters:
    """Turn widget values into filters; the 'All ...' choices and blanks mean no filter."""
    year = raw.get("year")
    year = None if year in (None, "", ALL_YEARS) else _as_int(year)

    course = raw.get("course")
    course = None if course is None else str(course).strip()
    if not course or course == ALL_COURSES:
        course = None

    return DashboardFilters(year=year, course=course)


def apply_filters(entries: Iterable[Entry], filters: DashboardFilters) -> List[Entry]:
    out = list(entries)
    if filters.year is not None:
        out = [e for e in out if e.year == filters.year]
    if filters.course is not None:
        out = [e for e in out if e.course == filters.course]
    return out


def filter_options(entries: Iterable[Entry]) -> Dict[str, List]:
    entries = list(entries)
    return {
        "years": sorted({e.year for e in entries}, reverse=True),
        "courses": sorted({e.course for e in entries if e.course}),
    }
