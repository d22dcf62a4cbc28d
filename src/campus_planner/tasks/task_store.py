# src/campus_planner/tasks/task_store.py

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import fields, replace
from datetime import datetime
from typing import Any

from ..core.ports import Subscriber, TaskPersistence, Unsubscribe
from .task_models import DEFAULT_TAGS, DurationUnit, PlannerSettings, StoreEvent, Task
from .task_stats import TaskStats, WeekStart, compute_stats

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

SORT_FIELDS = ("date", "title", "duration")
SORT_DIRECTIONS = ("asc", "desc")

_SORT_KEYS: dict[str, Callable[[Task], Any]] = {
    "date": lambda t: t.due_date,
    "title": lambda t: t.title.lower(),
    "duration": lambda t: t.duration,
}

_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})
_TASK_FIELDS = frozenset(f.name for f in fields(Task))
_TRIMMED_FIELDS = ("title", "tag", "notes")


def _local_now() -> datetime:
    return datetime.now().astimezone()


class TaskStore:
    """
    In-memory authoritative task collection.

    Owns the records, the tag vocabulary and the planner settings. Every mutation:
    - runs under one re-entrant lock,
    - writes through to the persistence collaborator (failures are logged, not raised),
    - notifies subscribers synchronously, in registration order.

    Insertion order is most-recent-first; display order always comes from sort_tasks().
    """

    def __init__(
        self,
        persistence: TaskPersistence,
        *,
        clock: Clock | None = None,
        week_start: WeekStart = WeekStart.SUNDAY,
    ) -> None:
        self._persistence = persistence
        self._clock: Clock = clock or _local_now
        self._week_start = week_start
        self._lock = threading.RLock()
        self._subscribers: list[Subscriber] = []

        self._tasks: list[Task] = list(persistence.load_records())
        self._settings: PlannerSettings = persistence.load_settings()
        self._tags: list[str] = list(persistence.load_tags()) or list(DEFAULT_TAGS)
        logger.info(
            "TaskStore ready tasks=%d tags=%d unit=%s",
            len(self._tasks),
            len(self._tags),
            self._settings.duration_unit,
        )

    # ---- read-only views ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self._tags)

    @property
    def settings(self) -> PlannerSettings:
        return replace(self._settings)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            for t in self._tasks:
                if t.id == task_id:
                    return t
            return None

    # ---- change feed ----

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """Register a change callback; returns a function that removes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, event: StoreEvent, payload: Any) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event, payload)
            except Exception:
                logger.exception("Subscriber %r failed on %s", callback, event)

    # ---- write-through helpers ----

    def _persist_tasks(self) -> None:
        try:
            self._persistence.save_records(list(self._tasks))
        except Exception:
            logger.exception("Failed to save tasks (in-memory state kept).")

    def _persist_settings(self) -> None:
        try:
            self._persistence.save_settings(replace(self._settings))
        except Exception:
            logger.exception("Failed to save settings (in-memory state kept).")

    def _persist_tags(self) -> None:
        try:
            self._persistence.save_tags(list(self._tags))
        except Exception:
            logger.exception("Failed to save tags (in-memory state kept).")

    def _now_iso(self) -> str:
        return self._clock().isoformat()

    def _new_id(self) -> str:
        taken = {t.id for t in self._tasks}
        while True:
            candidate = f"task_{int(time.time() * 1000)}_{uuid.uuid4().hex[:4]}"
            if candidate not in taken:
                return candidate

    # ---- tasks CRUD ----

    def add_task(self, data: Mapping[str, Any]) -> Task:
        """
        Create a task from already validated form data.

        Accepts "date" (form name) or "due_date" for the due date.
        """
        due = data.get("date", data.get("due_date"))
        if due is None:
            raise ValueError("due date is required")

        with self._lock:
            now = self._now_iso()
            task = Task(
                id=self._new_id(),
                title=str(data["title"]).strip(),
                due_date=str(due).strip(),
                duration=float(data["duration"]),
                tag=str(data["tag"]).strip(),
                notes=str(data.get("notes") or "").strip(),
                created_at=now,
                updated_at=now,
            )
            self._tasks.insert(0, task)
            self._persist_tasks()
            logger.debug("Task added id=%s tag=%s due=%s", task.id, task.tag, task.due_date)
            self._notify(StoreEvent.TASK_ADDED, task)
            return task

    def update_task(self, task_id: str, **changes: Any) -> Task | None:
        """
        Merge changes over an existing task and bump updated_at.

        Returns None when the id is unknown. Unknown field names raise TypeError.
        """
        bad = set(changes) - (_TASK_FIELDS - _IMMUTABLE_FIELDS - {"updated_at"})
        if bad:
            raise TypeError(f"update_task() got unexpected fields: {', '.join(sorted(bad))}")

        for name in _TRIMMED_FIELDS:
            if isinstance(changes.get(name), str):
                changes[name] = changes[name].strip()
        if "duration" in changes:
            changes["duration"] = float(changes["duration"])

        with self._lock:
            for idx, current in enumerate(self._tasks):
                if current.id == task_id:
                    break
            else:
                logger.debug("update_task: id=%s not found", task_id)
                return None

            updated = replace(current, **changes, updated_at=self._now_iso())
            self._tasks[idx] = updated
            self._persist_tasks()
            self._notify(StoreEvent.TASK_UPDATED, updated)
            return updated

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            for idx, t in enumerate(self._tasks):
                if t.id == task_id:
                    break
            else:
                return False

            removed = self._tasks.pop(idx)
            self._persist_tasks()
            logger.debug("Task deleted id=%s", task_id)
            self._notify(StoreEvent.TASK_DELETED, removed)
            return True

    def replace_tasks(self, records: Iterable[Task]) -> None:
        """Swap the whole collection (bulk import). Records must already be validated."""
        with self._lock:
            self._tasks = list(records)
            self._persist_tasks()
            logger.info("Tasks replaced total=%d", len(self._tasks))
            self._notify(StoreEvent.TASKS_REPLACED, self.tasks)

    # ---- derived views ----

    def sort_tasks(self, field: str = "date", direction: str = "asc") -> list[Task]:
        """
        Sorted copy of the collection; the stored order is not touched.

        Ascending is stable (equal keys keep collection order); descending is
        the exact reverse of ascending.
        """
        key = _SORT_KEYS.get(field)
        if key is None:
            raise ValueError(f"Unknown sort field: {field!r} (expected one of {', '.join(SORT_FIELDS)})")
        if direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction: {direction!r}")

        with self._lock:
            snapshot = list(self._tasks)

        ordered = sorted(snapshot, key=key)
        if direction == "desc":
            ordered.reverse()
        return ordered

    def get_stats(self) -> TaskStats:
        with self._lock:
            snapshot = list(self._tasks)
            cap = self._settings.weekly_cap
        return compute_stats(
            snapshot,
            today=self._clock().date(),
            week_start=self._week_start,
            weekly_cap=cap,
        )

    # ---- settings ----

    def update_settings(
        self,
        *,
        duration_unit: DurationUnit | str | None = None,
        weekly_cap: int | None = None,
    ) -> PlannerSettings:
        with self._lock:
            new = replace(self._settings)
            if duration_unit is not None:
                try:
                    new.duration_unit = DurationUnit(duration_unit)
                except ValueError:
                    raise ValueError(f"Unknown duration unit: {duration_unit!r}") from None
            if weekly_cap is not None:
                if isinstance(weekly_cap, bool) or not isinstance(weekly_cap, int) or weekly_cap < 0:
                    raise ValueError("weekly_cap must be a non-negative integer (minutes)")
                new.weekly_cap = weekly_cap

            self._settings = new
            self._persist_settings()
            self._notify(StoreEvent.SETTINGS_UPDATED, self.settings)
            return self.settings

    # ---- tag vocabulary ----

    def add_tag(self, tag: str) -> bool:
        name = (tag or "").strip()
        with self._lock:
            if not name or name in self._tags:
                return False
            self._tags.append(name)
            self._persist_tags()
            self._notify(StoreEvent.TAGS_UPDATED, self.tags)
            return True

    def remove_tag(self, tag: str) -> bool:
        """
        Remove a tag from the vocabulary. Tasks using it keep their tag value.

        The last remaining tag cannot be removed.
        """
        with self._lock:
            if tag not in self._tags:
                return False
            if len(self._tags) == 1:
                logger.info("Refusing to remove the last tag %r", tag)
                return False
            self._tags.remove(tag)
            self._persist_tags()
            self._notify(StoreEvent.TAGS_UPDATED, self.tags)
            return True

    # ---- reset ----

    def clear_all(self) -> None:
        with self._lock:
            self._tasks = []
            self._settings = PlannerSettings()
            self._tags = list(DEFAULT_TAGS)
            self._persist_tasks()
            self._persist_settings()
            self._persist_tags()
            logger.info("All planner data cleared.")
            self._notify(StoreEvent.CLEARED, None)
