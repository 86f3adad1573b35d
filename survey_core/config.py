from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "Course Survey Dashboard"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Scale bounds applied to every score (manual entry and CSV import).
# ---------------------------------------------------------------------------

DEFAULT_SCALE_MIN = 1.0
DEFAULT_SCALE_MAX = 10.0

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    source_url: str = ""
    scale_min: float = DEFAULT_SCALE_MIN
    scale_max: float = DEFAULT_SCALE_MAX
    data_dir: Path = DEFAULT_DATA_DIR
    log_level: str = "INFO"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-numeric %s=%r", name, raw)
        return default


def load_config(env_prefix: str = "SURVEY_") -> AppConfig:
    """Read startup options from the environment.

    Recognised: SURVEY_SOURCE_URL (kept for reference, the manual-entry
    dashboard never fetches it), SURVEY_SCALE_MIN, SURVEY_SCALE_MAX,
    SURVEY_DATA_DIR and SURVEY_LOG_LEVEL.
    """
    scale_min = _env_float(f"{env_prefix}SCALE_MIN", DEFAULT_SCALE_MIN)
    scale_max = _env_float(f"{env_prefix}SCALE_MAX", DEFAULT_SCALE_MAX)
    if scale_min > scale_max:
        scale_min, scale_max = scale_max, scale_min

    data_dir_raw = os.getenv(f"{env_prefix}DATA_DIR", "").strip()
    data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else DEFAULT_DATA_DIR

    return AppConfig(
        source_url=os.getenv(f"{env_prefix}SOURCE_URL", "").strip(),
        scale_min=scale_min,
        scale_max=scale_max,
        data_dir=data_dir,
        log_level=(os.getenv(f"{env_prefix}LOG_LEVEL", "").strip() or "INFO").upper(),
    )


def configure_logging(level: Optional[str] = None) -> None:
    # basicConfig is a no-op once handlers exist, so Streamlit reruns are safe.
    logging.basicConfig(level=getattr(logging, (level or "INFO").upper(), logging.INFO), format=LOG_FORMAT)
