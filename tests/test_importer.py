# tests/test_importer.py

from __future__ import annotations

import json
from pathlib import Path

from campus_planner.tasks.task_models import Task
from campus_planner.validation.importer import (
    export_json,
    read_import_file,
    validate_import,
    write_export_file,
)

STAMP = "2025-09-29T12:00:00+00:00"


def _fixed_now() -> str:
    return STAMP


def _item(**overrides) -> dict:
    item = {
        "id": "task_1",
        "title": "Study for exam",
        "dueDate": "2025-09-29",
        "duration": 90,
        "tag": "Study",
        "notes": "",
        "createdAt": "2025-09-01T08:00:00+00:00",
        "updatedAt": "2025-09-02T08:00:00+00:00",
    }
    item.update(overrides)
    return item


def test_malformed_json_is_rejected() -> None:
    res = validate_import("[{not json")
    assert res.valid is False
    assert res.data == []
    assert len(res.errors) == 1
    assert res.errors[0].startswith("Invalid JSON:")


def test_non_array_is_rejected() -> None:
    for raw in ('{"id": "x"}', "42", "null"):
        res = validate_import(raw)
        assert res.valid is False
        assert res.errors == ["Data must be an array of task objects."]


def test_empty_array_is_valid() -> None:
    res = validate_import("[]")
    assert res.valid is True
    assert res.data == []
    assert res.errors == []


def test_partial_success_reports_each_bad_item() -> None:
    raw = json.dumps(
        [
            _item(),
            "nope",
            _item(id="task_2", duration=-5),
            {"title": "no id"},
            _item(id="task_3"),
        ]
    )
    res = validate_import(raw, now=_fixed_now)
    assert res.valid is False
    assert [t.id for t in res.data] == ["task_1", "task_3"]
    assert res.errors[0] == "Item 1: Not a valid object."
    assert res.errors[1] == "Item 2 (task_2): missing or invalid duration (must be non-negative number)"
    assert res.errors[2].startswith("Item 3 (no-id): missing or invalid id")
    assert "missing or invalid dueDate (YYYY-MM-DD)" in res.errors[2]
    assert len(res.errors) == 3


def test_duration_type_checks() -> None:
    res = validate_import([_item(id="a", duration=True), _item(id="b", duration="90"), _item(id="c", duration=12.5)])
    assert [t.id for t in res.data] == ["c"]
    assert res.data[0].duration == 12.5
    assert len(res.errors) == 2


def test_impossible_date_is_rejected() -> None:
    res = validate_import([_item(dueDate="2025-02-30")])
    assert res.data == []
    assert "dueDate" in res.errors[0]


def test_duplicate_ids_keep_first() -> None:
    res = validate_import([_item(title="first"), _item(title="second")])
    assert [t.title for t in res.data] == ["first"]
    assert res.errors == ["Item 1 (task_1): duplicate id"]


def test_normalization_trims_and_fills_defaults() -> None:
    item = _item(id=" task_9 ", title="  Padded ", tag=" Club ", notes=None)
    del item["createdAt"]
    del item["updatedAt"]
    res = validate_import([item], now=_fixed_now)
    assert res.valid
    task = res.data[0]
    assert task.id == "task_9"
    assert task.title == "Padded"
    assert task.tag == "Club"
    assert task.notes == ""
    assert task.created_at == STAMP
    assert task.updated_at == STAMP


def test_timestamps_are_preserved() -> None:
    task = validate_import([_item()]).data[0]
    assert task.created_at == "2025-09-01T08:00:00+00:00"
    assert task.updated_at == "2025-09-02T08:00:00+00:00"


def test_export_is_accepted_by_import() -> None:
    tasks = [
        Task(id="a", title="Café run", due_date="2025-09-01", duration=30, tag="Errands", created_at=STAMP, updated_at=STAMP),
        Task(id="b", title="Lab", due_date="2025-09-02", duration=12.5, tag="Study", notes="bring goggles"),
    ]
    text = export_json(tasks)
    assert "Café" in text
    assert json.loads(text)[0]["duration"] == 30

    res = validate_import(text, now=_fixed_now)
    assert res.errors == []
    assert [t.id for t in res.data] == ["a", "b"]
    assert res.data[0] == tasks[0]


def test_file_round_trip(tmp_path: Path) -> None:
    tasks = [Task(id="a", title="A", due_date="2025-09-01", duration=5, tag="Other", created_at=STAMP, updated_at=STAMP)]
    out = write_export_file(tmp_path / "sub" / "export.json", tasks)
    assert out.exists()
    assert not out.with_suffix(".json.tmp").exists()

    res = read_import_file(out)
    assert res.valid
    assert res.data == tasks


def test_missing_file_reports_error(tmp_path: Path) -> None:
    res = read_import_file(tmp_path / "nope.json")
    assert res.valid is False
    assert res.errors[0].startswith("Cannot read")


def test_deeply_nested_json_is_a_structured_error() -> None:
    res = validate_import("[" * 100000)
    assert res.valid is False
    assert res.data == []
    assert res.errors[0].startswith("Invalid JSON:")
