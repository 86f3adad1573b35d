from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import altair as alt
import pandas as pd

from survey_core.aggregation import MonthSummary

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _scale_domain(scale_min: Optional[float], scale_max: Optional[float]) -> alt.Scale:
    if scale_min is None or scale_max is None:
        return alt.Scale(zero=False)
    return alt.Scale(domain=[scale_min, scale_max])


def overall_trend_chart(
    months: Sequence[MonthSummary],
    *,
    scale_min: Optional[float] = None,
    scale_max: Optional[float] = None,
) -> Optional[alt.Chart]:
    rows = [
        {"period": m.label, "overall": m.overall, "participants": m.participants, "entries": m.entries}
        for m in months
        if m.overall is not None
    ]
    if not rows:
        return None
    return (
        alt.Chart(pd.DataFrame(rows))
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("period:O", title="Month", sort=None, axis=alt.Axis(grid=False, labelAngle=0)),
            y=alt.Y("overall:Q", title="Weighted overall", scale=_scale_domain(scale_min, scale_max), axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[
                alt.Tooltip("period:O", title="Month"),
                alt.Tooltip("overall:Q", title="Overall", format=".2f"),
                alt.Tooltip("participants:Q", title="Participants", format=","),
                alt.Tooltip("entries:Q", title="Entries"),
            ],
        )
        .properties(height=260)
    )


def question_trend_chart(
    months: Sequence[MonthSummary],
    labels: Mapping[str, str],
    *,
    scale_min: Optional[float] = None,
    scale_max: Optional[float] = None,
) -> Optional[alt.Chart]:
    rows: List[Dict[str, Any]] = []
    for m in months:
        for qid, value in m.questions.items():
            if value is None:
                continue
            rows.append({"period": m.label, "question_id": qid, "question": labels.get(qid, qid), "score": value})
    if not rows:
        return None
    hover = alt.selection_point(fields=["question_id"], on="mouseover", empty="all")
    return (
        alt.Chart(pd.DataFrame(rows))
        .mark_line(point={"filled": True})
        .encode(
            x=alt.X("period:O", title="Month", sort=None, axis=alt.Axis(grid=False, labelAngle=0)),
            y=alt.Y("score:Q", title="Weighted score", scale=_scale_domain(scale_min, scale_max), axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("question:N", title="Question", sort=list(labels.values())),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=[
                alt.Tooltip("period:O", title="Month"),
                alt.Tooltip("question:N", title="Question"),
                alt.Tooltip("score:Q", title="Score", format=".2f"),
            ],
        )
        .add_params(hover)
        .properties(height=260)
    )
