# src/campus_planner/search/query.py

from __future__ import annotations

"""
Query compiler.

Turns what the user typed into one of:
- NONE:  blank input, nothing to filter
- TAG:   "@tag:<name>" shorthand, substring match on the tag field
- TIME:  "@time", records mentioning a clock time (10:30, 2:00 PM)
- REGEX: anything else, compiled as a user regular expression
- ERROR: the regular expression did not compile

Compilation never raises.
"""

import logging
import re
from dataclasses import dataclass
from enum import StrEnum

from ..validation.validators import TAG_FILTER_RE

logger = logging.getLogger(__name__)

TIME_FILTER = "@time"


class QueryKind(StrEnum):
    NONE = "none"
    TAG = "tag"
    TIME = "time"
    REGEX = "regex"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    kind: QueryKind
    text: str = ""
    tag: str | None = None
    matcher: re.Pattern[str] | None = None
    error: str | None = None


def compile_regex(pattern: str, *, case_sensitive: bool = False) -> tuple[re.Pattern[str] | None, str | None]:
    """Compile a user pattern. Returns (matcher, None) or (None, error message)."""
    if not pattern or not pattern.strip():
        return None, None

    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags), None
    except (re.error, OverflowError, RecursionError) as e:
        logger.debug("Rejected search pattern %r: %s", pattern, e)
        return None, f"Invalid regex: {e}"


def compile_query(raw: str | None, *, case_sensitive: bool = False) -> CompiledQuery:
    text = (raw or "").strip()
    if not text:
        return CompiledQuery(kind=QueryKind.NONE)

    m = TAG_FILTER_RE.fullmatch(text)
    if m:
        return CompiledQuery(kind=QueryKind.TAG, text=text, tag=m.group(1).strip())

    if text.lower() == TIME_FILTER:
        return CompiledQuery(kind=QueryKind.TIME, text=text)

    matcher, error = compile_regex(text, case_sensitive=case_sensitive)
    if error:
        return CompiledQuery(kind=QueryKind.ERROR, text=text, error=error)
    return CompiledQuery(kind=QueryKind.REGEX, text=text, matcher=matcher)
