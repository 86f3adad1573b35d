from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

import pandas as pd


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def to_float_or_none(value: object) -> Optional[float]:
    if value is None:
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if pd.isna(out) or out in (float("inf"), float("-inf")):
        return None
    return out


def format_score(value: object, decimals: int = 2) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):.{decimals}f}"


def format_score_columns(df: pd.DataFrame, cols: Iterable[str], decimals: int = 2) -> pd.DataFrame:
    formatted = df.copy()
    for c in cols:
        if c in formatted.columns:
            formatted[c] = formatted[c].apply(lambda v: f"{float(v):.{decimals}f}" if pd.notna(v) else "")
    return formatted
