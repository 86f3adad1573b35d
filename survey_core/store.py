from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from survey_core.config import DEFAULT_SCALE_MAX, DEFAULT_SCALE_MIN
from survey_core.models import Entry, Settings, default_settings
from survey_core.schemas import EntryModel, SettingsModel

logger = logging.getLogger(__name__)

SETTINGS_KEY = "survey_dashboard_settings"
ENTRIES_KEY = "survey_dashboard_entries"


class RecordStore:
    """Owns the question settings and the entry collection.

    Both live in memory and are written back to ``<data_dir>/<key>.json`` on
    every mutation. Scale bounds always come from the startup configuration.
    """

    def __init__(
        self,
        data_dir: Path | str,
        *,
        scale_min: float = DEFAULT_SCALE_MIN,
        scale_max: float = DEFAULT_SCALE_MAX,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.scale_min = float(scale_min)
        self.scale_max = float(scale_max)
        self._settings: Settings = default_settings(self.scale_min, self.scale_max)
        self._entries: List[Entry] = []

    # ---------------- Paths ----------------
    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    @property
    def settings_path(self) -> Path:
        return self._path(SETTINGS_KEY)

    @property
    def entries_path(self) -> Path:
        return self._path(ENTRIES_KEY)

    # ---------------- Views ----------------
    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def entries(self) -> List[Entry]:
        return list(self._entries)

    def get(self, entry_id: str) -> Optional[Entry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    # ---------------- Persistence ----------------
    def _read_document(self, key: str) -> object:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Unreadable %s document at %s; using defaults", key, path, exc_info=True)
            return None

    def _load_settings(self) -> Settings:
        fallback = default_settings(self.scale_min, self.scale_max)
        raw = self._read_document(SETTINGS_KEY)
        if raw is None:
            return fallback
        try:
            settings = SettingsModel.model_validate(raw).to_settings()
        except ValidationError as exc:
            logger.warning("Malformed settings document; using defaults: %s", exc)
            return fallback
        return replace(settings, scale_min=self.scale_min, scale_max=self.scale_max)

    def _load_entries(self) -> List[Entry]:
        raw = self._read_document(ENTRIES_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Entries document is not a list; starting empty")
            return []
        entries: List[Entry] = []
        skipped = 0
        for item in raw:
            try:
                entries.append(EntryModel.model_validate(item).to_entry())
            except ValidationError:
                skipped += 1
        if skipped:
            logger.warning("Skipped %d malformed persisted entries", skipped)
        return entries

    def load(self) -> Tuple[Settings, List[Entry]]:
        """Restore settings and entries, falling back to defaults on any problem."""
        self._settings = self._load_settings()
        self._entries = self._load_entries()
        logger.info("Loaded %d entries from %s", len(self._entries), self.data_dir)
        return self._settings, list(self._entries)

    def _write_document(self, key: str, payload: object) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, path)

    def save(self, settings: Optional[Settings] = None, entries: Optional[Iterable[Entry]] = None) -> None:
        if settings is not None:
            self._settings = settings
        if entries is not None:
            self._entries = list(entries)
        self._write_document(SETTINGS_KEY, SettingsModel.from_settings(self._settings).model_dump())
        self._write_document(ENTRIES_KEY, [EntryModel.from_entry(e).model_dump() for e in self._entries])
        logger.debug("Saved %d entries to %s", len(self._entries), self.data_dir)

    # ---------------- Mutations ----------------
    def _index_of(self, entry_id: str) -> Optional[int]:
        for idx, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return idx
        return None

    def _put(self, entry: Entry) -> bool:
        idx = self._index_of(entry.id)
        if idx is None:
            self._entries.append(entry)
            return True
        self._entries[idx] = entry
        return False

    def upsert(self, entry: Entry) -> Entry:
        inserted = self._put(entry)
        self.save()
        logger.info("%s entry %s (%s %s)", "Inserted" if inserted else "Updated", entry.id, entry.course, entry.period)
        return entry

    def remove(self, entry_id: str) -> bool:
        idx = self._index_of(entry_id)
        if idx is None:
            return False
        del self._entries[idx]
        self.save()
        logger.info("Removed entry %s", entry_id)
        return True

    def merge(self, entries: Iterable[Entry]) -> Dict[str, int]:
        """Merge an imported batch; ids already present are overwritten in place."""
        inserted = updated = 0
        for entry in entries:
            if self._put(entry):
                inserted += 1
            else:
                updated += 1
        if inserted or updated:
            self.save()
        logger.info("Merged import: %d inserted, %d updated", inserted, updated)
        return {"inserted": inserted, "updated": updated}

    def update_question_label(self, question_id: str, label: str) -> bool:
        label = (label or "").strip()
        if not label or question_id not in self._settings.question_ids:
            return False
        if self._settings.label_for(question_id) == label:
            return False
        self._settings = self._settings.with_label(question_id, label)
        self.save()
        return True
