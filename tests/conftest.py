import sys
from pathlib import Path

import pytest

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from survey_core.models import Entry  # noqa: E402
from survey_core.store import RecordStore  # noqa: E402


@pytest.fixture()
def store(tmp_path):
    s = RecordStore(tmp_path / "data", scale_min=1, scale_max=10)
    s.load()
    return s


@pytest.fixture()
def make_entry():
    def _make(entry_id="e1", course="X", year=2024, month=1, participants=10, **scores):
        return Entry(id=entry_id, course=course, year=year, month=month, participants=participants, scores=dict(scores))

    return _make
