# src/campus_planner/validation/validators.py

from __future__ import annotations

"""
Field validation rules.

Every rule is a full-string match (re.fullmatch), so "$"-style anchors can never
accept a trailing newline. Validation never raises: callers always get a
FieldResult / FormResult describing what is wrong.

Pattern catalog:
- title:          \\S(?:.*\\S)?            no leading/trailing whitespace
- duration:       (0|[1-9][0-9]*)(\\.[0-9]{1,2})?
- date:           YYYY-MM-DD, month 01-12, day 01-31, then a real-calendar check
- tag:            [A-Za-z]+(?:[ -][A-Za-z]+)*
- duplicate word: \\b(\\w+)\\s+\\1\\b      back-reference, case-insensitive
- time token:     \\b(\\d{1,2}):(\\d{2})(?=(?:\\s*(am|pm))?\\b)   meridiem seen via lookahead only
- tag filter:     @tag:<name>             search shorthand
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

logger = logging.getLogger(__name__)

TITLE_RE = re.compile(r"\S(?:.*\S)?")
DURATION_RE = re.compile(r"(0|[1-9][0-9]*)(\.[0-9]{1,2})?")
DATE_RE = re.compile(r"([0-9]{4})-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])")
TAG_RE = re.compile(r"[A-Za-z]+(?:[ -][A-Za-z]+)*")

DUPLICATE_WORD_RE = re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE)
TIME_TOKEN_RE = re.compile(r"\b(\d{1,2}):(\d{2})(?=(?:\s*(am|pm))?\b)", re.IGNORECASE | re.ASCII)
TAG_FILTER_RE = re.compile(r"@tag:(\w[\w -]*)", re.IGNORECASE)

MAX_DURATION_MINUTES = 24 * 60

FORM_FIELDS: tuple[str, ...] = ("title", "duration", "date", "tag", "notes")

_FIELD_ALIASES = {
    "due_date": "date",
    "dueDate": "date",
}

MESSAGES: dict[str, dict[str, str]] = {
    "title": {
        "required": "Title is required.",
        "invalid": "Title must not start or end with spaces.",
    },
    "duration": {
        "required": "Duration is required.",
        "invalid": "Enter a valid number (e.g. 90 or 12.5).",
        "negative": "Duration must be non-negative.",
        "long": "That's over 24 hours, are you sure?",
    },
    "date": {
        "required": "Due date is required.",
        "invalid": "Enter a valid date in YYYY-MM-DD format.",
        "nonexistent": "This date does not exist (e.g. Feb 30).",
    },
    "tag": {
        "required": "Tag is required.",
        "invalid": "Tag must contain only letters, spaces, or hyphens.",
    },
    "notes": {
        "duplicate": 'Duplicate word detected: "{word} {word}". Did you mean to repeat it?',
    },
}


@dataclass(frozen=True, slots=True)
class FieldResult:
    valid: bool
    error: str | None = None
    warning: str | None = None


@dataclass(frozen=True, slots=True)
class FormResult:
    valid: bool
    errors: dict[str, str] = field(default_factory=dict)
    warnings: dict[str, str] = field(default_factory=dict)


_OK = FieldResult(valid=True)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _fail(field_name: str, key: str) -> FieldResult:
    return FieldResult(valid=False, error=MESSAGES[field_name][key])


def is_real_date(text: str) -> bool:
    """True if text is YYYY-MM-DD and names a day that exists."""
    m = DATE_RE.fullmatch(text)
    if not m:
        return False
    try:
        date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return False
    return True


def find_duplicate_word(text: str) -> str | None:
    """First word immediately repeated (case-insensitively) after whitespace."""
    m = DUPLICATE_WORD_RE.search(text)
    return m.group(1) if m else None


def _validate_title(value: str) -> FieldResult:
    if not value:
        return _fail("title", "required")
    if not TITLE_RE.fullmatch(value):
        return _fail("title", "invalid")
    return _OK


def _validate_duration(value: str) -> FieldResult:
    if not value:
        return _fail("duration", "required")
    if not DURATION_RE.fullmatch(value):
        return _fail("duration", "invalid")
    minutes = float(value)
    if minutes < 0:
        return _fail("duration", "negative")
    if minutes > MAX_DURATION_MINUTES:
        return FieldResult(valid=True, warning=MESSAGES["duration"]["long"])
    return _OK


def _validate_date(value: str) -> FieldResult:
    if not value:
        return _fail("date", "required")
    if not DATE_RE.fullmatch(value):
        return _fail("date", "invalid")
    if not is_real_date(value):
        return _fail("date", "nonexistent")
    return _OK


def _validate_tag(value: str) -> FieldResult:
    if not value:
        return _fail("tag", "required")
    if not TAG_RE.fullmatch(value):
        return _fail("tag", "invalid")
    return _OK


def _validate_notes(value: str) -> FieldResult:
    # Optional field: never an error, only an advisory.
    word = find_duplicate_word(value) if value else None
    if word is None:
        return _OK
    return FieldResult(valid=True, warning=MESSAGES["notes"]["duplicate"].format(word=word))


_RULES = {
    "title": _validate_title,
    "duration": _validate_duration,
    "date": _validate_date,
    "tag": _validate_tag,
    "notes": _validate_notes,
}


def validate_field(field_name: str, value: Any) -> FieldResult:
    """
    Validate one raw form value.

    Unknown field names are accepted as valid so callers can pass extra form data.
    """
    name = _FIELD_ALIASES.get(field_name, field_name)
    rule = _RULES.get(name)
    if rule is None:
        return _OK
    return rule(_as_text(value))


def validate_form(data: Mapping[str, Any]) -> FormResult:
    """Run every form field; warnings never make the form invalid."""
    errors: dict[str, str] = {}
    warnings: dict[str, str] = {}

    for name in FORM_FIELDS:
        raw = data.get(name)
        if raw is None and name == "date":
            raw = data.get("due_date", data.get("dueDate"))
        result = validate_field(name, raw)
        if result.error:
            errors[name] = result.error
        if result.warning:
            warnings[name] = result.warning

    if errors:
        logger.debug("Form rejected: %s", ", ".join(sorted(errors)))
    return FormResult(valid=not errors, errors=errors, warnings=warnings)
