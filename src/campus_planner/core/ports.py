# src/campus_planner/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store depends on Protocols instead of concrete implementations.
This keeps storage backends swappable and makes testing easier.
"""

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from ..tasks.task_models import PlannerSettings, StoreEvent, Task

Subscriber = Callable[[StoreEvent, Any], None]
# Called synchronously after each store mutation: (event, payload).

Unsubscribe = Callable[[], None]


class BlobStore(Protocol):
    """Key/value store of text blobs (the browser-localStorage shape)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


class TaskPersistence(Protocol):
    """
    Load/save collaborator for TaskStore.

    Loads never fail: implementations fall back to defaults.
    Saves are fire-and-forget from the store's point of view.
    """

    def load_records(self) -> list[Task]: ...
    def save_records(self, records: Sequence[Task]) -> None: ...

    def load_settings(self) -> PlannerSettings: ...
    def save_settings(self, settings: PlannerSettings) -> None: ...

    def load_tags(self) -> list[str]: ...
    def save_tags(self, tags: Sequence[str]) -> None: ...
