"""Participant-weighted aggregation of survey entries.

Every entry first gets its own overall: the plain mean of its non-null
scores. Buckets then weight each entry by its participant count, separately
for the overall and for each question, so an entry that skipped a question
does not dilute that question's average.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from survey_core.models import Entry, Question, period_label
from survey_core.numbers import round_half_up

DISPLAY_DECIMALS = 2


@dataclass(frozen=True)
class MonthSummary:
    year: int
    month: int
    label: str
    overall: Optional[float]
    questions: Dict[str, Optional[float]] = field(default_factory=dict)
    participants: int = 0
    entries: int = 0


@dataclass(frozen=True)
class CourseSummary:
    course: str
    overall: Optional[float]
    participants: int = 0
    entries: int = 0


@dataclass(frozen=True)
class QuickStats:
    courses: int = 0
    entries: int = 0
    participants: int = 0
    overall: Optional[float] = None


def _question_ids(questions: Sequence[Question] | Sequence[str]) -> List[str]:
    return [q.id if isinstance(q, Question) else str(q) for q in questions]


def entries_frame(entries: Iterable[Entry], questions: Sequence[Question] | Sequence[str]) -> pd.DataFrame:
    """One row per entry with a float column per question and the entry's own overall."""
    qids = _question_ids(questions)
    records = [
        {
            "id": e.id,
            "course": e.course,
            "year": int(e.year),
            "month": int(e.month),
            "participants": int(e.participants),
            **{qid: e.scores.get(qid) for qid in qids},
        }
        for e in entries
    ]
    df = pd.DataFrame.from_records(records, columns=["id", "course", "year", "month", "participants"] + qids)
    for qid in qids:
        df[qid] = pd.to_numeric(df[qid], errors="coerce").astype(float)
    df["entry_overall"] = df[qids].mean(axis=1, skipna=True) if qids else float("nan")
    return df


def _weighted_columns(df: pd.DataFrame, qids: List[str]) -> pd.DataFrame:
    out = df.copy()
    weight = out["participants"].astype(float)
    out["w_overall"] = (out["entry_overall"] * weight).fillna(0.0)
    out["p_overall"] = weight.where(out["entry_overall"].notna(), 0.0)
    for qid in qids:
        out[f"w_{qid}"] = (out[qid] * weight).fillna(0.0)
        out[f"p_{qid}"] = weight.where(out[qid].notna(), 0.0)
    return out


def _ratio(numerator: float, denominator: float) -> Optional[float]:
    if denominator > 0:
        return round_half_up(numerator / denominator, DISPLAY_DECIMALS)
    return None


def _reduce(df: pd.DataFrame, keys: List[str], qids: List[str]) -> pd.DataFrame:
    weighted = _weighted_columns(df, qids)
    sum_cols = ["participants", "w_overall", "p_overall"] + [f"{p}_{q}" for q in qids for p in ("w", "p")]
    grouped = weighted.groupby(keys, sort=True)[sum_cols].sum()
    grouped["entries"] = weighted.groupby(keys, sort=True).size()
    return grouped.reset_index()


def aggregate(entries: Iterable[Entry], questions: Sequence[Question] | Sequence[str]) -> List[MonthSummary]:
    """Group entries by (year, month) across courses, ascending by period."""
    qids = _question_ids(questions)
    df = entries_frame(entries, qids)
    if df.empty:
        return []

    out: List[MonthSummary] = []
    for row in _reduce(df, ["year", "month"], qids).to_dict(orient="records"):
        out.append(
            MonthSummary(
                year=int(row["year"]),
                month=int(row["month"]),
                label=period_label(row["year"], row["month"]),
                overall=_ratio(row["w_overall"], row["p_overall"]),
                questions={qid: _ratio(row[f"w_{qid}"], row[f"p_{qid}"]) for qid in qids},
                participants=int(row["participants"]),
                entries=int(row["entries"]),
            )
        )
    return out


def course_breakdown(entries: Iterable[Entry], questions: Sequence[Question] | Sequence[str]) -> List[CourseSummary]:
    qids = _question_ids(questions)
    df = entries_frame(entries, qids)
    if df.empty:
        return []
    return [
        CourseSummary(
            course=str(row["course"]),
            overall=_ratio(row["w_overall"], row["p_overall"]),
            participants=int(row["participants"]),
            entries=int(row["entries"]),
        )
        for row in _reduce(df, ["course"], qids).to_dict(orient="records")
    ]


def quick_stats(entries: Iterable[Entry], questions: Sequence[Question] | Sequence[str]) -> QuickStats:
    qids = _question_ids(questions)
    df = entries_frame(entries, qids)
    if df.empty:
        return QuickStats()
    weighted = _weighted_columns(df, qids)
    return QuickStats(
        courses=int(df["course"].nunique()),
        entries=int(len(df)),
        participants=int(df["participants"].sum()),
        overall=_ratio(float(weighted["w_overall"].sum()), float(weighted["p_overall"].sum())),
    )
