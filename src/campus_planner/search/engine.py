# src/campus_planner/search/engine.py

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from ..tasks.task_models import Task
from ..validation.validators import TIME_TOKEN_RE
from .query import CompiledQuery, QueryKind, compile_query

logger = logging.getLogger(__name__)

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
}
_HTML_ESCAPE_RE = re.compile(r"""[&<>"']""")


@dataclass(frozen=True, slots=True)
class SearchResult:
    filtered: list[Task]
    matcher: re.Pattern[str] | None = None
    error: str | None = None
    query: CompiledQuery = field(default_factory=lambda: CompiledQuery(kind=QueryKind.NONE))


@dataclass(frozen=True, slots=True)
class TimeToken:
    text: str
    start: int
    end: int
    meridiem: str | None


def escape_html(text: str) -> str:
    return _HTML_ESCAPE_RE.sub(lambda m: _HTML_ESCAPES[m.group(0)], text or "")


def iter_matches(text: str, matcher: re.Pattern[str]) -> Iterator[tuple[int, int]]:
    """
    Yield (start, end) of every non-overlapping, non-empty match.

    The scan position moves forward by at least one character per step, so a
    pattern that can match the empty string still terminates.
    """
    pos = 0
    n = len(text)
    while pos <= n:
        m = matcher.search(text, pos)
        if m is None:
            return
        start, end = m.span()
        if end == start:
            pos = start + 1
            continue
        yield start, end
        pos = end


def highlight(
    text: str,
    matcher: re.Pattern[str] | None,
    *,
    open_tag: str = "<mark>",
    close_tag: str = "</mark>",
) -> str:
    """
    Escape text for HTML, then wrap matches in markers.

    Matching runs on the escaped string, so markers are never escaped and user
    text can never smuggle in markup.
    """
    return _wrap_matches(escape_html(text or ""), matcher, open_tag, close_tag)


def mark_plain(text: str, matcher: re.Pattern[str] | None, *, open_tag: str = "[", close_tag: str = "]") -> str:
    """Terminal variant of highlight(): no HTML escaping."""
    return _wrap_matches(text or "", matcher, open_tag, close_tag)


def _wrap_matches(text: str, matcher: re.Pattern[str] | None, open_tag: str, close_tag: str) -> str:
    if matcher is None or not text:
        return text

    parts: list[str] = []
    last = 0
    for start, end in iter_matches(text, matcher):
        parts.append(text[last:start])
        parts.append(f"{open_tag}{text[start:end]}{close_tag}")
        last = end
    parts.append(text[last:])
    return "".join(parts)


def find_time_tokens(text: str) -> list[TimeToken]:
    """Clock times in text. The am/pm suffix is reported but not part of the match."""
    return [
        TimeToken(
            text=m.group(0),
            start=m.start(),
            end=m.end(),
            meridiem=m.group(3).lower() if m.group(3) else None,
        )
        for m in TIME_TOKEN_RE.finditer(text or "")
    ]


def _matches_query(task: Task, query: CompiledQuery) -> bool:
    if query.kind is QueryKind.TAG:
        return (query.tag or "").lower() in task.tag.lower()
    if query.kind is QueryKind.TIME:
        return TIME_TOKEN_RE.search(task.searchable_text()) is not None
    if query.kind is QueryKind.REGEX and query.matcher is not None:
        # Pattern.search keeps no state between calls.
        return query.matcher.search(task.searchable_text()) is not None
    return True


def filter_tasks(
    tasks: Sequence[Task],
    query: str | None,
    case_sensitive: bool = False,
) -> SearchResult:
    """
    Filter records by a user query.

    Fail-open: when the query is not a valid pattern, every record is returned
    together with the error message.
    """
    compiled = compile_query(query, case_sensitive=case_sensitive)

    if compiled.kind in (QueryKind.NONE, QueryKind.ERROR):
        return SearchResult(filtered=list(tasks), error=compiled.error, query=compiled)

    filtered = [t for t in tasks if _matches_query(t, compiled)]
    logger.debug("Search kind=%s query=%r matched=%d/%d", compiled.kind, compiled.text, len(filtered), len(tasks))
    return SearchResult(filtered=filtered, matcher=compiled.matcher, query=compiled)
