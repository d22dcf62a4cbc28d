# tests/test_commands.py

from __future__ import annotations

import json
from pathlib import Path

from campus_planner.cli.commands import CommandRegistry, registry
from campus_planner.tasks.task_models import DEFAULT_TAGS

ADD = '/add title="Study for exam" date=2025-09-29 duration=90 tag=Study'


def _only_id(state) -> str:
    assert len(state.store.tasks) == 1
    return state.store.tasks[0].id


def test_command_registry_passes_args_raw_and_emit(state) -> None:
    reg = CommandRegistry()
    seen = {}

    def handler(state, args, raw, emit):
        seen["args"] = args
        seen["raw"] = raw
        if emit is not None:
            emit("note")
        return "ok"

    notes: list[str] = []
    reg.register("a", handler, "a", aliases=["x"])

    assert reg.handle(state, '/A one "two three"', emit=notes.append) == "ok"
    assert seen["args"] == ["one", "two three"]
    assert seen["raw"] == 'one "two three"'
    assert notes == ["note"]

    # unbalanced quotes fall back to whitespace split
    assert reg.handle(state, '/x it"s (') == "ok"
    assert seen["args"] == ['it"s', "("]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_help_lists_commands(state) -> None:
    out = registry.handle(state, "/help")
    assert out.startswith("Available commands:")
    for name in ("/add", "/search", "/stats", "/tags", "/import", "/export"):
        assert name in out
    assert registry.handle(state, "/?") == out


def test_add_then_list(state) -> None:
    out = registry.handle(state, ADD)
    assert out.startswith("Added: [task_")

    task = state.store.tasks[0]
    assert task.duration == 90
    assert task.title == "Study for exam"

    listing = registry.handle(state, "/ls")
    assert "2025-09-29 | Study for exam | 90 min | Study" in listing


def test_add_reports_validation_errors(state) -> None:
    out = registry.handle(state, '/add title=" bad" date=2025-02-30 duration=90 tag=Study')
    assert out.startswith("Task not added:")
    assert "title:" in out
    assert "date: This date does not exist" in out
    assert state.store.tasks == ()

    assert registry.handle(state, "/add nonsense").startswith("Usage:")


def test_add_with_warning_and_new_tag(state) -> None:
    out = registry.handle(
        state, '/add title=Read date=2025-09-30 duration=1500 tag=Reading notes="the the end"'
    )
    assert out.startswith("Added:")
    assert "duration (warning)" in out
    assert "notes (warning)" in out
    assert "Reading" in state.store.tags


def test_edit_show_delete(state) -> None:
    registry.handle(state, ADD)
    tid = _only_id(state)

    out = registry.handle(state, f'/edit {tid} duration=45 notes="bring calculator"')
    assert out.startswith("Updated:")
    assert "45 min" in out
    assert state.store.get_task(tid).notes == "bring calculator"

    shown = registry.handle(state, f"/show {tid}")
    assert "bring calculator" in shown
    assert "created:" in shown

    assert registry.handle(state, f"/edit {tid} date=2025-02-30").startswith("Task not updated:")
    assert registry.handle(state, f"/edit {tid} colour=red").startswith("Usage:")
    assert registry.handle(state, "/edit missing title=x") == "No task with id missing."

    assert registry.handle(state, f"/rm {tid}") == f"Deleted {tid}."
    assert registry.handle(state, f"/delete {tid}") == f"No task with id {tid}."


def test_list_sorting_and_usage(state) -> None:
    registry.handle(state, '/add title=Beta date=2025-09-02 duration=30 tag=Study')
    registry.handle(state, '/add title=Alpha date=2025-09-01 duration=60 tag=Club')

    lines = registry.handle(state, "/list duration desc").splitlines()
    assert "Alpha" in lines[0]
    assert "Beta" in lines[1]

    assert registry.handle(state, "/list priority").startswith("Usage:")


def test_list_empty(state) -> None:
    assert registry.handle(state, "/list") == "No tasks."


def test_search_marks_matches_and_counts(state) -> None:
    registry.handle(state, ADD)
    registry.handle(state, '/add title="Football practice" date=2025-09-30 duration=60 tag=Sports notes="at 10:30 am"')

    out = registry.handle(state, "/search exam")
    assert out.startswith("1 match(es):")
    assert "Study for [exam]" in out
    assert state.last_query == "exam"

    assert registry.handle(state, "/s @tag:sport").startswith("1 match(es):")
    assert "Football" in registry.handle(state, "/search @time")


def test_search_bad_regex_shows_everything(state) -> None:
    registry.handle(state, ADD)
    out = registry.handle(state, "/search (")
    assert "Invalid regex" in out
    assert "(showing all tasks)" in out
    assert "Study for exam" in out


def test_case_toggle_changes_search(state) -> None:
    registry.handle(state, ADD)
    assert registry.handle(state, "/search study").startswith("1 match(es):")

    assert registry.handle(state, "/case on") == "Case-sensitive search ON."
    assert state.case_sensitive is True
    assert registry.handle(state, "/search study") == "0 match(es):\nNo tasks."
    assert "ON" in registry.handle(state, "/case")
    assert registry.handle(state, "/case maybe").startswith("Usage:")


def test_stats_and_weekly_cap(state) -> None:
    out = registry.handle(state, "/stats")
    assert "Tasks: 0" in out
    assert "Top tag: -" in out
    assert "Weekly cap: no cap set" in out

    registry.handle(state, ADD)
    out = registry.handle(state, "/stats")
    assert "Tasks: 1" in out
    assert "Total duration: 90 min" in out
    assert "Top tag: Study" in out
    assert "Mon 2025-09-29: 90 min (1)" in out

    assert registry.handle(state, "/settings cap 60") == "Weekly cap set to 60 minutes."
    assert "Weekly cap: 30 min over! (100%)" in registry.handle(state, "/stats")

    registry.handle(state, "/settings cap 120")
    assert "Weekly cap: 30 min left (75%)" in registry.handle(state, "/stats")

    registry.handle(state, "/settings unit hours")
    assert "Total duration: 1.5 hr" in registry.handle(state, "/stats")


def test_settings_validation(state) -> None:
    assert "Duration unit: minutes" in registry.handle(state, "/settings")
    assert registry.handle(state, "/settings unit days").startswith("Invalid setting:")
    assert registry.handle(state, "/settings cap lots").startswith("Invalid setting:")
    assert registry.handle(state, "/settings cap -5").startswith("Invalid setting:")
    assert registry.handle(state, "/settings cap 0") == "Weekly cap disabled."
    assert registry.handle(state, "/settings colour red").startswith("Usage:")


def test_tags_commands(state) -> None:
    assert registry.handle(state, "/tags") == "Tags: " + ", ".join(DEFAULT_TAGS)
    assert registry.handle(state, "/tags add Group Work") == 'Tag "Group Work" added.'
    assert registry.handle(state, "/tags add Group Work") == 'Tag "Group Work" already exists.'
    assert registry.handle(state, "/tags add 123").startswith("Invalid tag:")
    assert registry.handle(state, "/tags remove Group Work") == 'Tag "Group Work" removed.'
    assert registry.handle(state, "/tags remove Nope") == 'No tag "Nope".'
    assert registry.handle(state, "/tags rename x").startswith("Usage:")


def test_last_tag_is_kept(state) -> None:
    for tag in DEFAULT_TAGS[:-1]:
        state.store.remove_tag(tag)
    last = DEFAULT_TAGS[-1]
    assert registry.handle(state, f"/tags remove {last}") == "The last remaining tag cannot be removed."
    assert state.store.tags == (last,)


def test_export_then_import(state, tmp_path: Path) -> None:
    registry.handle(state, ADD)
    path = tmp_path / "out.json"

    out = registry.handle(state, f"/export {path}")
    assert out.startswith("Exported 1 tasks to")
    exported = json.loads(path.read_text("utf-8"))
    assert exported[0]["title"] == "Study for exam"

    registry.handle(state, "/clear yes")
    assert state.store.tasks == ()

    assert registry.handle(state, f"/import {path}") == "Imported 1 tasks."
    assert state.store.tasks[0].title == "Study for exam"


def test_import_partial_and_failures(state, tmp_path: Path) -> None:
    good = {"id": "a", "title": "A", "dueDate": "2025-09-01", "duration": 10, "tag": "Study"}
    mixed = tmp_path / "mixed.json"
    mixed.write_text(json.dumps([good, {"id": "b"}]), "utf-8")
    out = registry.handle(state, f"/import {mixed}")
    assert out.startswith("Imported 1 tasks. 1 items were skipped:")
    assert "Item 1 (b):" in out

    broken = tmp_path / "broken.json"
    broken.write_text("{", "utf-8")
    assert registry.handle(state, f"/import {broken}").startswith("Import failed: Invalid JSON")
    assert [t.id for t in state.store.tasks] == ["a"]

    assert registry.handle(state, "/import").startswith("Usage:")


def test_clear_requires_confirmation(state) -> None:
    registry.handle(state, ADD)
    assert "Confirm with: /clear yes" in registry.handle(state, "/clear")
    assert len(state.store.tasks) == 1

    notes: list[str] = []
    assert registry.handle(state, "/clear yes", emit=notes.append) == "All data cleared."
    assert notes == ["Clearing all data..."]
    assert state.store.tasks == ()


def test_edit_with_new_tag_adds_it_to_vocabulary(state) -> None:
    registry.handle(state, ADD)
    tid = _only_id(state)

    assert registry.handle(state, f"/edit {tid} tag=Reading").startswith("Updated:")
    assert state.store.get_task(tid).tag == "Reading"
    assert state.store.tags.count("Reading") == 1

    registry.handle(state, f"/edit {tid} tag=Study")
    assert state.store.tags == (*DEFAULT_TAGS, "Reading")
