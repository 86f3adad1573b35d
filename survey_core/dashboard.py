from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List

from survey_core.aggregation import aggregate, course_breakdown, quick_stats
from survey_core.charts import overall_trend_chart, question_trend_chart, to_vega_spec
from survey_core.filters import DashboardFilters, apply_filters, filter_options
from survey_core.models import Entry, Settings, period_label


def entry_rows(entries: Iterable[Entry], settings: Settings) -> List[Dict[str, Any]]:
    """Table rows, newest month first, then by course."""
    ordered = sorted(entries, key=lambda e: (-e.year, -e.month, e.course.lower()))
    return [
        {
            "id": e.id,
            "period": period_label(e.year, e.month),
            "course": e.course,
            "participants": e.participants,
            **{qid: e.scores.get(qid) for qid in settings.question_ids},
        }
        for e in ordered
    ]


def compute_dashboard(filters: DashboardFilters, settings: Settings, entries: Iterable[Entry]) -> Dict[str, Any]:
    all_entries = list(entries)
    filtered = apply_filters(all_entries, filters)
    labels = settings.display_labels()

    months = aggregate(filtered, settings.questions)
    stats = quick_stats(filtered, settings.questions)

    charts: Dict[str, Any] = {}
    overall = overall_trend_chart(months, scale_min=settings.scale_min, scale_max=settings.scale_max)
    if overall is not None:
        charts["overall_trend"] = to_vega_spec(overall)
    per_question = question_trend_chart(months, labels, scale_min=settings.scale_min, scale_max=settings.scale_max)
    if per_question is not None:
        charts["question_trend"] = to_vega_spec(per_question)

    return {
        "filters": asdict(filters),
        "options": filter_options(all_entries),
        "questions": [asdict(q) for q in settings.questions],
        "stats": asdict(stats),
        "months": [asdict(m) for m in months],
        "courses": [asdict(c) for c in course_breakdown(filtered, settings.questions)],
        "entries": entry_rows(filtered, settings),
        "charts": charts,
    }
