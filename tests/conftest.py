# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from campus_planner.core.state import AppState
from campus_planner.storage.persistence import BlobPersistence
from campus_planner.tasks.task_stats import WeekStart
from campus_planner.tasks.task_store import TaskStore

from .fakes import TODAY, FakeClock, MemoryBlobStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="planner-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "planner.sqlite3",
        week_start=WeekStart.SUNDAY,
        case_sensitive_search=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(TODAY)


@pytest.fixture()
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def store(blobs: MemoryBlobStore, clock: FakeClock) -> TaskStore:
    return TaskStore(BlobPersistence(blobs), clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    return AppState(settings=settings, store=store)
