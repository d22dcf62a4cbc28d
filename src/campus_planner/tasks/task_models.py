# src/campus_planner/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

DEFAULT_TAGS: tuple[str, ...] = (
    "Study",
    "Assignment",
    "Club",
    "Sports",
    "Social",
    "Errands",
    "Other",
)


class DurationUnit(StrEnum):
    """Display unit for durations. Stored values are always minutes."""

    MINUTES = "minutes"
    HOURS = "hours"

    @classmethod
    def parse(cls, raw: str | None) -> DurationUnit:
        if not raw:
            return cls.MINUTES
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MINUTES


class StoreEvent(StrEnum):
    """Change-feed event names published by TaskStore."""

    TASK_ADDED = "taskAdded"
    TASK_UPDATED = "taskUpdated"
    TASK_DELETED = "taskDeleted"
    TASKS_REPLACED = "tasksReplaced"
    SETTINGS_UPDATED = "settingsUpdated"
    TAGS_UPDATED = "tagsUpdated"
    CLEARED = "cleared"


def duration_text(minutes: float) -> str:
    """Decimal form of a duration: 90 -> "90", 12.5 -> "12.5"."""
    value = float(minutes)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_duration(minutes: float, unit: DurationUnit = DurationUnit.MINUTES) -> str:
    if unit is DurationUnit.HOURS:
        return f"{float(minutes) / 60:.1f} hr"
    return f"{duration_text(minutes)} min"


@dataclass(slots=True)
class Task:
    id: str
    title: str
    due_date: str
    duration: float
    tag: str
    notes: str = ""

    created_at: str = ""
    updated_at: str = ""

    def duration_text(self) -> str:
        return duration_text(self.duration)

    def searchable_text(self) -> str:
        """Fields joined the way search sees a record."""
        return " ".join([self.title, self.tag, self.notes or "", self.due_date, self.duration_text()])

    def to_dict(self) -> dict[str, Any]:
        """Export (camelCase) form. Integral durations are written as JSON integers."""
        value = float(self.duration)
        return {
            "id": self.id,
            "title": self.title,
            "dueDate": self.due_date,
            "duration": int(value) if value.is_integer() else value,
            "tag": self.tag,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Build a Task from an already validated export dict."""
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            due_date=str(data["dueDate"]),
            duration=float(data["duration"]),
            tag=str(data["tag"]),
            notes=str(data.get("notes") or ""),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
        )


@dataclass(slots=True)
class PlannerSettings:
    """
    User-facing preferences kept next to the tasks.

    weekly_cap is in minutes; 0 disables cap signalling.
    """

    duration_unit: DurationUnit = DurationUnit.MINUTES
    weekly_cap: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"durationUnit": str(self.duration_unit), "weeklyCap": int(self.weekly_cap)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PlannerSettings:
        """Apply defaults for anything missing or unusable."""
        data = data or {}
        cap_raw = data.get("weeklyCap", 0)
        try:
            cap = int(cap_raw)
        except (TypeError, ValueError, OverflowError):
            cap = 0
        return cls(
            duration_unit=DurationUnit.parse(data.get("durationUnit")),
            weekly_cap=max(0, cap),
        )
