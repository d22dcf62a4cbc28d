# src/campus_planner/tasks/task_stats.py

"""
Derived statistics over a task collection.

Everything here is a pure function of (tasks, today, week start, cap), so the
store can hand over a snapshot and tests can pin "today".
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import IntEnum

from .task_models import Task

# Fixed English labels: weekday() index -> short name.
_WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

TREND_DAYS = 7


class WeekStart(IntEnum):
    """First day of the week, as a date.weekday() value."""

    MONDAY = 0
    SUNDAY = 6

    @classmethod
    def parse(cls, raw: str | None) -> WeekStart:
        if raw and raw.strip().lower() in ("monday", "mon", "0"):
            return cls.MONDAY
        return cls.SUNDAY


@dataclass(frozen=True, slots=True)
class DayBucket:
    date: str
    label: str
    duration: float
    count: int


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    total_duration: float
    top_tag: str | None
    tag_counts: dict[str, int] = field(default_factory=dict)
    tag_durations: dict[str, float] = field(default_factory=dict)
    last7: list[DayBucket] = field(default_factory=list)
    weekly_duration: float = 0.0
    weekly_cap: int = 0


@dataclass(frozen=True, slots=True)
class CapStatus:
    enabled: bool
    remaining: float = 0.0
    over: bool = False
    percent: float = 0.0


def week_start_date(today: date, week_start: WeekStart = WeekStart.SUNDAY) -> date:
    """Most recent week start on or before today."""
    offset = (today.weekday() - int(week_start)) % 7
    return today - timedelta(days=offset)


def pick_top_tag(tag_counts: dict[str, int]) -> str | None:
    """
    Most frequent tag.

    Ties go to the alphabetically first tag (case-insensitive, then exact), so the
    answer does not depend on collection order.
    """
    if not tag_counts:
        return None
    return min(tag_counts, key=lambda t: (-tag_counts[t], t.casefold(), t))


def compute_stats(
    tasks: Sequence[Task],
    *,
    today: date,
    week_start: WeekStart = WeekStart.SUNDAY,
    weekly_cap: int = 0,
) -> TaskStats:
    tag_counts: Counter[str] = Counter()
    tag_durations: dict[str, float] = {}
    by_day: dict[str, tuple[float, int]] = {}

    for t in tasks:
        tag_counts[t.tag] += 1
        tag_durations[t.tag] = tag_durations.get(t.tag, 0.0) + t.duration
        dur, cnt = by_day.get(t.due_date, (0.0, 0))
        by_day[t.due_date] = (dur + t.duration, cnt + 1)

    last7: list[DayBucket] = []
    for back in range(TREND_DAYS - 1, -1, -1):
        day = today - timedelta(days=back)
        key = day.isoformat()
        dur, cnt = by_day.get(key, (0.0, 0))
        last7.append(DayBucket(date=key, label=_WEEKDAY_LABELS[day.weekday()], duration=dur, count=cnt))

    # Canonical YYYY-MM-DD strings compare chronologically.
    week_key = week_start_date(today, week_start).isoformat()
    weekly_duration = sum(t.duration for t in tasks if t.due_date >= week_key)

    return TaskStats(
        total=len(tasks),
        total_duration=sum(t.duration for t in tasks),
        top_tag=pick_top_tag(dict(tag_counts)),
        tag_counts=dict(tag_counts),
        tag_durations=tag_durations,
        last7=last7,
        weekly_duration=weekly_duration,
        weekly_cap=weekly_cap,
    )


def cap_status(stats: TaskStats) -> CapStatus:
    """Remaining (or exceeded) minutes against the weekly cap."""
    cap = stats.weekly_cap
    if not cap or cap <= 0:
        return CapStatus(enabled=False)

    remaining = cap - stats.weekly_duration
    percent = min(stats.weekly_duration / cap * 100.0, 100.0)
    return CapStatus(enabled=True, remaining=abs(remaining), over=remaining < 0, percent=percent)
