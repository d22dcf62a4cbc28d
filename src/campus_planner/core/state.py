# src/campus_planner/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Settings object (config.Settings or a test stand-in).
    settings: Any

    store: TaskStore

    # Session-only search preference; not persisted.
    case_sensitive: bool = False
    last_query: str = ""
