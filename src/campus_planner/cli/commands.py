# src/campus_planner/cli/commands.py

from __future__ import annotations

import contextlib
import logging
import shlex
from collections.abc import Callable, Iterable

from ..core.state import AppState
from ..search.engine import filter_tasks, mark_plain
from ..tasks.task_models import DurationUnit, Task, format_duration
from ..tasks.task_stats import cap_status
from ..tasks.task_store import SORT_DIRECTIONS, SORT_FIELDS
from ..validation.importer import read_import_file, write_export_file
from ..validation.validators import validate_field, validate_form

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], str, CommandEmitter | None], str]

logger = logging.getLogger(__name__)

# /edit field names -> Task attribute names
_EDITABLE = {
    "title": "title",
    "date": "due_date",
    "duration": "duration",
    "tag": "tag",
    "notes": "notes",
}


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, /search, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Handlers get shell-style split args plus the raw remainder of the line
        (search patterns need the unsplit text).
        """
        if not line.startswith("/"):
            return None

        body = line[1:]
        name, _, raw = body.strip().partition(" ")
        if not name:
            return "Empty command. Use /help to list available commands."

        name = name.lower()
        raw = raw.strip()

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            args = shlex.split(raw)
        except ValueError:
            args = raw.split()

        return handler(state, args, raw, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----

def _unit(state: AppState) -> DurationUnit:
    return state.store.settings.duration_unit


def format_task_line(task: Task, unit: DurationUnit, mark: Callable[[str], str] | None = None) -> str:
    m = mark or (lambda s: s)
    notes = f" | {m(task.notes)}" if task.notes else ""
    return (
        f"[{task.id}] {m(task.due_date)} | {m(task.title)} | "
        f"{format_duration(task.duration, unit)} | {m(task.tag)}{notes}"
    )


def _format_lines(tasks: Iterable[Task], unit: DurationUnit, mark: Callable[[str], str] | None = None) -> str:
    lines = [format_task_line(t, unit, mark) for t in tasks]
    return "\n".join(lines) if lines else "No tasks."


def _parse_pairs(args: list[str]) -> tuple[dict[str, str], list[str]]:
    """key=value pairs; anything else is reported back as unparsed."""
    pairs: dict[str, str] = {}
    rest: list[str] = []
    for a in args:
        key, sep, value = a.partition("=")
        if sep and key:
            pairs[key.strip().lower()] = value
        else:
            rest.append(a)
    return pairs, rest


def _report(errors: dict[str, str], warnings: dict[str, str]) -> list[str]:
    out = [f"  {name}: {msg}" for name, msg in errors.items()]
    out += [f"  {name} (warning): {msg}" for name, msg in warnings.items()]
    return out


# ---- handlers ----

def cmd_help(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    """
    /add title="Study for exam" date=2025-09-29 duration=90 tag=Study [notes="..."]
    """
    pairs, rest = _parse_pairs(args)
    if rest:
        return 'Usage: /add title="..." date=YYYY-MM-DD duration=MIN tag=TAG [notes="..."]'

    result = validate_form(pairs)
    if not result.valid:
        return "\n".join(["Task not added:", *_report(result.errors, result.warnings)])

    store = state.store
    tag = pairs["tag"].strip()
    if tag not in store.tags:
        store.add_tag(tag)

    task = store.add_task(pairs)
    lines = [f"Added: {format_task_line(task, _unit(state))}"]
    lines += _report({}, result.warnings)
    return "\n".join(lines)


def cmd_edit(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    """
    /edit <id> field=value [field=value ...]   fields: title date duration tag notes
    """
    if not args:
        return "Usage: /edit <id> field=value ..."

    task_id, pairs_args = args[0], args[1:]
    pairs, rest = _parse_pairs(pairs_args)
    unknown = [k for k in pairs if k not in _EDITABLE]
    if rest or unknown or not pairs:
        return f"Usage: /edit <id> field=value ...  (fields: {', '.join(_EDITABLE)})"

    errors: dict[str, str] = {}
    warnings: dict[str, str] = {}
    for name, value in pairs.items():
        res = validate_field(name, value)
        if res.error:
            errors[name] = res.error
        if res.warning:
            warnings[name] = res.warning
    if errors:
        return "\n".join(["Task not updated:", *_report(errors, warnings)])

    changes = {_EDITABLE[k]: v for k, v in pairs.items()}
    updated = state.store.update_task(task_id, **changes)
    if updated is None:
        return f"No task with id {task_id}."
    if updated.tag not in state.store.tags:
        state.store.add_tag(updated.tag)
    return "\n".join([f"Updated: {format_task_line(updated, _unit(state))}", *_report({}, warnings)])


def cmd_delete(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    if len(args) != 1:
        return "Usage: /delete <id>"
    if state.store.delete_task(args[0]):
        return f"Deleted {args[0]}."
    return f"No task with id {args[0]}."


def cmd_show(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    if len(args) != 1:
        return "Usage: /show <id>"
    task = state.store.get_task(args[0])
    if task is None:
        return f"No task with id {args[0]}."
    return (
        f"{format_task_line(task, _unit(state))}\n"
        f"  created: {task.created_at}\n"
        f"  updated: {task.updated_at}"
    )


def cmd_list(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    """
    /list [date|title|duration] [asc|desc]
    """
    field = args[0].lower() if args else "date"
    direction = args[1].lower() if len(args) > 1 else "asc"
    if field not in SORT_FIELDS or direction not in SORT_DIRECTIONS:
        return f"Usage: /list [{'|'.join(SORT_FIELDS)}] [{'|'.join(SORT_DIRECTIONS)}]"
    return _format_lines(state.store.sort_tasks(field, direction), _unit(state))


def cmd_search(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    """
    /search <regex>      regular expression over title/tag/notes/date/duration
    /search @tag:<name>  tag contains <name>
    /search @time        tasks mentioning a clock time
    """
    if not raw:
        return "Usage: /search <regex> | @tag:<name> | @time"

    state.last_query = raw
    result = filter_tasks(state.store.sort_tasks("date", "asc"), raw, state.case_sensitive)

    matcher = result.matcher
    body = _format_lines(result.filtered, _unit(state), lambda s: mark_plain(s, matcher))
    if result.error:
        return f"{result.error} (showing all tasks)\n{body}"
    return f"{len(result.filtered)} match(es):\n{body}"


def cmd_case(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    if not args:
        return f"Case-sensitive search is {'ON' if state.case_sensitive else 'OFF'}. Use /case on or /case off."
    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        state.case_sensitive = True
    elif arg in ("off", "0", "false", "no"):
        state.case_sensitive = False
    else:
        return "Usage: /case on or /case off."
    return f"Case-sensitive search {'ON' if state.case_sensitive else 'OFF'}."


def cmd_stats(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    stats = state.store.get_stats()
    unit = _unit(state)

    lines = [
        "Stats:",
        f"  Tasks: {stats.total}",
        f"  Total duration: {format_duration(stats.total_duration, unit)}",
        f"  Top tag: {stats.top_tag or '-'}",
    ]

    cap = cap_status(stats)
    if not cap.enabled:
        lines.append("  Weekly cap: no cap set")
    elif cap.over:
        lines.append(f"  Weekly cap: {format_duration(cap.remaining, unit)} over! ({cap.percent:.0f}%)")
    else:
        lines.append(f"  Weekly cap: {format_duration(cap.remaining, unit)} left ({cap.percent:.0f}%)")

    lines.append("  Last 7 days:")
    for day in stats.last7:
        lines.append(f"    {day.label} {day.date}: {format_duration(day.duration, unit)} ({day.count})")

    if stats.tag_durations:
        lines.append("  By tag:")
        for tag, dur in sorted(stats.tag_durations.items(), key=lambda kv: kv[1], reverse=True):
            lines.append(f"    {tag}: {format_duration(dur, unit)}")
    return "\n".join(lines)


def cmd_tags(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    """
    /tags                 list the vocabulary
    /tags add <name>      add a tag (letters, spaces, hyphens)
    /tags remove <name>   remove a tag (tasks keep their value)
    """
    store = state.store
    if not args:
        return "Tags: " + ", ".join(store.tags)

    sub = args[0].lower()
    name = " ".join(args[1:]).strip()
    if sub == "add":
        res = validate_field("tag", name)
        if not res.valid:
            return f"Invalid tag: {res.error}"
        if not store.add_tag(name):
            return f'Tag "{name}" already exists.'
        return f'Tag "{name}" added.'
    if sub in ("remove", "rm"):
        if name not in store.tags:
            return f'No tag "{name}".'
        if not store.remove_tag(name):
            return "The last remaining tag cannot be removed."
        return f'Tag "{name}" removed.'
    return "Usage: /tags | /tags add <name> | /tags remove <name>"


def cmd_settings(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    """
    /settings               show
    /settings unit minutes|hours
    /settings cap <minutes>   (0 disables)
    """
    store = state.store
    if not args:
        s = store.settings
        cap = f"{s.weekly_cap} min" if s.weekly_cap else "off"
        return f"Settings:\n  Duration unit: {s.duration_unit}\n  Weekly cap: {cap}"

    if len(args) != 2:
        return "Usage: /settings unit minutes|hours | /settings cap <minutes>"

    key, value = args[0].lower(), args[1].lower()
    try:
        if key == "unit":
            store.update_settings(duration_unit=value)
            return f"Duration unit set to {value}."
        if key == "cap":
            cap = int(value)
            store.update_settings(weekly_cap=cap)
            return f"Weekly cap set to {cap} minutes." if cap > 0 else "Weekly cap disabled."
    except ValueError as e:
        return f"Invalid setting: {e}"
    return "Usage: /settings unit minutes|hours | /settings cap <minutes>"


def cmd_import(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    if len(args) != 1:
        return "Usage: /import <file.json>"

    result = read_import_file(args[0])
    if not result.data:
        return "Import failed: " + "; ".join(result.errors or ["no tasks found"])

    state.store.replace_tasks(result.data)
    msg = f"Imported {len(result.data)} tasks."
    if result.errors:
        msg += f" {len(result.errors)} items were skipped:\n" + "\n".join(f"  {e}" for e in result.errors)
    return msg


def cmd_export(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    if len(args) != 1:
        return "Usage: /export <file.json>"
    try:
        path = write_export_file(args[0], state.store.tasks)
    except OSError as e:
        logger.warning("Export failed: %s", e)
        return f"Export failed: {e}"
    return f"Exported {len(state.store.tasks)} tasks to {path}."


def cmd_clear(state: AppState, args: list[str], raw: str, emit: CommandEmitter | None = None) -> str:
    if args != ["yes"]:
        return "This deletes all tasks and resets settings and tags. Confirm with: /clear yes"
    if emit:
        with contextlib.suppress(Exception):
            emit("Clearing all data...")
    state.store.clear_all()
    return "All data cleared."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text='Add a task: /add title="..." date=YYYY-MM-DD duration=MIN tag=TAG [notes="..."].')
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> field=value ...")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["del", "rm"])
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register("list", cmd_list, help_text="List tasks: /list [date|title|duration] [asc|desc].", aliases=["ls"])
registry.register("search", cmd_search, help_text="Search: /search <regex> | @tag:<name> | @time.", aliases=["s"])
registry.register("case", cmd_case, help_text="Case-sensitive search: /case on | /case off.")
registry.register("stats", cmd_stats, help_text="Totals, top tag, weekly cap and 7-day trend.")
registry.register("tags", cmd_tags, help_text="Tag vocabulary: /tags | /tags add <name> | /tags remove <name>.")
registry.register("settings", cmd_settings, help_text="Settings: /settings unit minutes|hours | /settings cap <min>.")
registry.register("import", cmd_import, help_text="Replace all tasks from a JSON file: /import <file>.")
registry.register("export", cmd_export, help_text="Write all tasks to a JSON file: /export <file>.")
registry.register("clear", cmd_clear, help_text="Delete everything: /clear yes.")
