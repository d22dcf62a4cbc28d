# src/campus_planner/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite blob store, persistence adapter and TaskStore into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..storage.blob_store import SQLiteBlobStore
from ..storage.persistence import BlobPersistence
from ..tasks.task_stats import WeekStart
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    persistence = BlobPersistence(SQLiteBlobStore(settings.db_path))
    store = TaskStore(
        persistence,
        week_start=getattr(settings, "week_start", WeekStart.SUNDAY),
    )

    return AppState(
        settings=settings,
        store=store,
        case_sensitive=bool(getattr(settings, "case_sensitive_search", False)),
    )
