from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
import re


DEFAULT_DATE_FORMAT = "DD/MM/YYYY"

_TASK_RE = re.compile(r"^- \[(?P<state>[ x])\] (?P<tag>[a-z0-9-]+)-(?P<number>[1-9][0-9]*) (?P<title>.+)$")
_HEADING_RE = re.compile(r"^(?P<marker>#{1,6}) (?P<content>.+)$")
_TAG_RE = re.compile(r"^[a-z0-9-]+$")
_DATE_TOKEN_RE = re.compile(r"YYYY|YY|MM|DD")
_DATE_TOKENS = {"YYYY": "%Y", "YY": "%y", "MM": "%m", "DD": "%d"}


class LineKind(str, Enum):
    SECTION = "section"
    TASK = "task"
    NOTE = "note"
    FREEFORM = "freeform"


@dataclass(frozen=True)
class Classified:
    kind: LineKind
    day: date | None = None
    tag: str = ""
    number: int = 0
    done: bool = False
    title: str = ""
    note: str = ""


FREEFORM = Classified(kind=LineKind.FREEFORM)


def strftime_pattern(date_format: str) -> str:
    """Translate a token format like `DD/MM/YYYY` into a strftime pattern.

    Formats that already contain `%` are taken as strftime patterns verbatim.
    """

    if "%" in date_format:
        return date_format
    return _DATE_TOKEN_RE.sub(lambda match: _DATE_TOKENS[match.group(0)], date_format)


def date_format_problem(date_format: str) -> str:
    pattern = strftime_pattern(date_format)
    if not pattern.strip():
        return "date_format is empty"
    missing = [
        label
        for label, codes in (("day", ("%d",)), ("month", ("%m", "%b", "%B")), ("year", ("%Y", "%y")))
        if not any(code in pattern for code in codes)
    ]
    if missing:
        return f"date_format {date_format!r} lacks {', '.join(missing)}"
    if "\n" in pattern or "\r" in pattern:
        return "date_format must be a single line"
    return ""


def format_date(day: date, date_format: str) -> str:
    return day.strftime(strftime_pattern(date_format))


def parse_date_exact(text: str, date_format: str) -> date | None:
    pattern = strftime_pattern(date_format)
    try:
        parsed = datetime.strptime(text, pattern).date()
    except ValueError:
        return None
    if parsed.strftime(pattern) != text:
        return None
    return parsed


def is_valid_tag(tag: str) -> bool:
    return bool(_TAG_RE.match(tag))


def classify_line(
    text: str,
    *,
    date_format: str,
    note_indent: int,
    previous: LineKind | None,
) -> Classified:
    """Classify one line (without its terminator).

    `previous` is the kind of the line directly above, as the caller resolved
    it; notes only attach when it was a task or another note.
    """

    heading = _HEADING_RE.match(text)
    if heading:
        day = parse_date_exact(heading.group("content"), date_format)
        if day is not None:
            return Classified(kind=LineKind.SECTION, day=day)
        return FREEFORM

    task = _TASK_RE.match(text)
    if task:
        return Classified(
            kind=LineKind.TASK,
            tag=task.group("tag"),
            number=int(task.group("number")),
            done=task.group("state") == "x",
            title=task.group("title"),
        )

    if previous in (LineKind.TASK, LineKind.NOTE) and _is_note_shape(text, note_indent):
        return Classified(kind=LineKind.NOTE, note=text[note_indent + 2 :])

    return FREEFORM


def _is_note_shape(text: str, note_indent: int) -> bool:
    if len(text) < note_indent + 2:
        return False
    if text[:note_indent] != " " * note_indent:
        return False
    return text[note_indent : note_indent + 2] == "- "
