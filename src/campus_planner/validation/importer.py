# src/campus_planner/validation/importer.py

from __future__ import annotations

import json
import logging
import math
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ..tasks.task_models import Task
from .validators import is_real_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportResult:
    valid: bool
    data: list[Task] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat()


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _valid_duration(value: Any) -> bool:
    # bool is an int subclass; JSON true/false is not a duration.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        minutes = float(value)
    except OverflowError:
        return False
    return math.isfinite(minutes) and minutes >= 0


def _item_issues(item: dict[str, Any]) -> list[str]:
    issues: list[str] = []
    if not _non_empty_str(item.get("id")):
        issues.append("missing or invalid id")
    if not _non_empty_str(item.get("title")):
        issues.append("missing or invalid title")
    if not _valid_duration(item.get("duration")):
        issues.append("missing or invalid duration (must be non-negative number)")
    if not _non_empty_str(item.get("tag")):
        issues.append("missing or invalid tag")
    due = item.get("dueDate")
    if not isinstance(due, str) or not is_real_date(due):
        issues.append("missing or invalid dueDate (YYYY-MM-DD)")
    return issues


def _normalize(item: dict[str, Any], now: str) -> Task:
    notes = item.get("notes")
    created = item.get("createdAt")
    updated = item.get("updatedAt")
    return Task(
        id=item["id"].strip(),
        title=item["title"].strip(),
        due_date=item["dueDate"],
        duration=float(item["duration"]),
        tag=item["tag"].strip(),
        notes=notes.strip() if isinstance(notes, str) else "",
        created_at=created if _non_empty_str(created) else now,
        updated_at=updated if _non_empty_str(updated) else now,
    )


def validate_import(raw: Any, *, now: Callable[[], str] = _now_iso) -> ImportResult:
    """
    Validate and normalize an imported task list.

    raw may be JSON text/bytes or an already parsed value. Bad elements are
    skipped and reported one message per element; the rest are still accepted.
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except (ValueError, UnicodeDecodeError, RecursionError) as e:
            return ImportResult(valid=False, errors=[f"Invalid JSON: {e}"])
    else:
        data = raw

    if not isinstance(data, list):
        return ImportResult(valid=False, errors=["Data must be an array of task objects."])

    stamp = now()
    accepted: list[Task] = []
    errors: list[str] = []
    seen_ids: set[str] = set()

    for i, item in enumerate(data):
        if not isinstance(item, dict):
            errors.append(f"Item {i}: Not a valid object.")
            continue

        issues = _item_issues(item)
        if not issues and item["id"].strip() in seen_ids:
            issues.append("duplicate id")

        if issues:
            label = item.get("id") if _non_empty_str(item.get("id")) else "no-id"
            errors.append(f"Item {i} ({label}): {', '.join(issues)}")
            continue

        task = _normalize(item, stamp)
        seen_ids.add(task.id)
        accepted.append(task)

    if errors:
        logger.warning("Import skipped %d of %d items.", len(errors), len(data))
    return ImportResult(valid=not errors, data=accepted, errors=errors)


def export_json(tasks: Iterable[Task]) -> str:
    """Pretty-printed JSON accepted by validate_import."""
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False, indent=2)


def read_import_file(path: str | Path) -> ImportResult:
    p = Path(path).expanduser()
    try:
        raw = p.read_text("utf-8")
    except OSError as e:
        logger.warning("Failed to read import file %s: %s", p, e)
        return ImportResult(valid=False, errors=[f"Cannot read {p}: {e.strerror or e}"])
    return validate_import(raw)


def write_export_file(path: str | Path, tasks: Iterable[Task]) -> Path:
    """Write an export atomically (tmp file + replace)."""
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(export_json(tasks), "utf-8")
    os.replace(tmp, p)
    logger.info("Exported tasks to %s", p)
    return p
