# src/campus_planner/storage/persistence.py

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from ..core.ports import BlobStore
from ..tasks.task_models import DEFAULT_TAGS, PlannerSettings, Task
from ..validation.importer import validate_import

logger = logging.getLogger(__name__)

TASKS_KEY = "clp:tasks"
SETTINGS_KEY = "clp:settings"
TAGS_KEY = "clp:tags"


class BlobPersistence:
    """
    TaskPersistence backed by JSON blobs in a BlobStore.

    Loads are best-effort: a missing or corrupt blob yields defaults and a log line.
    Saves propagate storage errors; TaskStore decides what to do with them.
    """

    def __init__(self, blobs: BlobStore) -> None:
        self._blobs = blobs

    def _read_json(self, key: str) -> Any:
        raw = self._blobs.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("Corrupt blob under %s; using defaults.", key)
            return None

    def _write_json(self, key: str, value: Any) -> None:
        self._blobs.set(key, json.dumps(value, ensure_ascii=False))

    # ---- records ----

    def load_records(self) -> list[Task]:
        data = self._read_json(TASKS_KEY)
        if data is None:
            return []
        # Stored data goes through the same gate as an import.
        result = validate_import(data)
        for msg in result.errors:
            logger.warning("Dropped stored record: %s", msg)
        return result.data

    def save_records(self, records: Sequence[Task]) -> None:
        self._write_json(TASKS_KEY, [t.to_dict() for t in records])

    # ---- settings ----

    def load_settings(self) -> PlannerSettings:
        data = self._read_json(SETTINGS_KEY)
        return PlannerSettings.from_dict(data if isinstance(data, dict) else None)

    def save_settings(self, settings: PlannerSettings) -> None:
        self._write_json(SETTINGS_KEY, settings.to_dict())

    # ---- tags ----

    def load_tags(self) -> list[str]:
        data = self._read_json(TAGS_KEY)
        if isinstance(data, list):
            tags: list[str] = []
            for t in data:
                if isinstance(t, str) and t.strip() and t not in tags:
                    tags.append(t)
            if tags:
                return tags
        return list(DEFAULT_TAGS)

    def save_tags(self, tags: Sequence[str]) -> None:
        self._write_json(TAGS_KEY, list(tags))
