from __future__ import annotations

import io
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from survey_core.models import BASE_COLUMNS, Entry, new_entry_id
from survey_core.numbers import round_half_up

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "survey-entries.csv"


class CsvImportError(Exception):
    """Raised when CSV text has no header row or cannot be tokenised."""


def format_number(value: object) -> str:
    """Render a number for CSV: whole values without '.0', others to at most 2 decimals."""
    rounded = round_half_up(value, 2)
    if rounded is None:
        return ""
    if float(rounded).is_integer():
        return str(int(rounded))
    return f"{rounded:.2f}".rstrip("0").rstrip(".")


def encode(entries: Iterable[Entry], question_ids: Sequence[str]) -> str:
    header = BASE_COLUMNS + list(question_ids)
    rows = [
        [e.id, e.course, str(e.year), str(e.month), str(e.participants)]
        + [format_number(e.scores.get(qid)) for qid in question_ids]
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=header, dtype=object)
    return df.to_csv(index=False, lineterminator="\n")


def _column_positions(header: List[str], question_ids: Sequence[str]) -> Dict[str, int]:
    """Map each field to a column index: by header name when complete, else positionally."""
    normalized = [str(h).strip().lower() for h in header]
    wanted = BASE_COLUMNS + list(question_ids)
    if all(name.lower() in normalized for name in wanted):
        return {name: normalized.index(name.lower()) for name in wanted}
    return {name: idx for idx, name in enumerate(wanted)}


def _as_whole(value: object) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    f = float(value)
    if not math.isfinite(f) or not f.is_integer():
        return None
    return int(f)


def _as_score(value: object, scale_min: Optional[float], scale_max: Optional[float]) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    f = float(value)
    if not math.isfinite(f):
        return None
    if scale_min is not None:
        f = max(scale_min, f)
    if scale_max is not None:
        f = min(scale_max, f)
    return f


def _read_frame(text: str) -> Tuple[pd.DataFrame, int]:
    """Tokenise CSV text; rows wider than the header are dropped and counted."""
    lines = [ln for ln in text.splitlines() if ln.strip()]
    if not lines:
        raise CsvImportError("CSV file is empty")
    body = "\n".join(lines)
    dropped: List[List[str]] = []

    def _drop_wide_row(fields: List[str]) -> None:
        dropped.append(fields)
        return None

    try:
        width = len(pd.read_csv(io.StringIO(body), header=None, nrows=1, dtype=str).columns)
        frame = pd.read_csv(
            io.StringIO(body),
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            engine="python",
            on_bad_lines=_drop_wide_row,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        raise CsvImportError(f"Could not parse CSV: {exc}") from exc
    return frame, len(dropped)


def decode(
    text: str,
    question_ids: Sequence[str],
    *,
    scale_min: Optional[float] = None,
    scale_max: Optional[float] = None,
) -> List[Entry]:
    """Parse CSV text into entries.

    The first non-blank line is the header. Rows with more fields than the
    header, or whose year, month or participants are not whole numbers (or
    whose month is outside 1-12), are skipped and counted in one warning;
    unparsable scores become None. Scores are clamped when bounds
    are supplied.
    """
    raw, skipped = _read_frame(text or "")
    header = [str(v) for v in raw.iloc[0].tolist()]
    positions = _column_positions(header, question_ids)

    data = raw.iloc[1:].reset_index(drop=True)
    width = len(data.columns)

    def col(name: str) -> pd.Series:
        idx = positions[name]
        if idx >= width:
            return pd.Series([""] * len(data), dtype=object)
        return data[idx].fillna("").astype(str).str.strip()

    ids = col("id")
    courses = col("course")
    numeric = {name: pd.to_numeric(col(name), errors="coerce") for name in ["year", "month", "participants"]}
    scores = {qid: pd.to_numeric(col(qid), errors="coerce") for qid in question_ids}

    entries: List[Entry] = []
    for i in range(len(data)):
        year = _as_whole(numeric["year"].iloc[i])
        month = _as_whole(numeric["month"].iloc[i])
        participants = _as_whole(numeric["participants"].iloc[i])
        if year is None or month is None or participants is None or not 1 <= month <= 12:
            skipped += 1
            continue
        entries.append(
            Entry(
                id=ids.iloc[i] or new_entry_id(),
                course=courses.iloc[i],
                year=year,
                month=month,
                participants=participants,
                scores={qid: _as_score(scores[qid].iloc[i], scale_min, scale_max) for qid in question_ids},
            )
        )

    if skipped:
        logger.warning("Skipped %d CSV rows with extra fields or invalid year/month/participants", skipped)
    logger.info("Decoded %d entries from CSV", len(entries))
    return entries
