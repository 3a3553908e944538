from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .classify import format_date, is_valid_tag
from .counters import TagCounters
from .document import Entry, LogDocument, Note, RawLine, SectionHeader, Task, render_entry
from .errors import DuplicateTaskId, InvalidInput, TaskNotFound


SECTION_MARKER = "###"


@dataclass(frozen=True)
class Match:
    task_id: str
    tag: str
    done: bool
    title: str
    snippet: str
    notes: tuple[str, ...]
    section: str

    @property
    def status(self) -> str:
        return "done" if self.done else "open"


def format_match(match: Match, *, note_indent: int = 6) -> list[str]:
    mark = "x" if match.done else " "
    lines = [f"[{mark}] {match.task_id} {match.title}"]
    for text in match.notes:
        lines.append(f"{' ' * note_indent}- {text}")
    return lines


def printable(text: str) -> str:
    """Text safe to print or serialize: undecodable log bytes show as U+FFFD."""

    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def clean_text(value: str) -> str:
    return " ".join((value or "").split())


def clean_tag(value: str) -> str:
    tag = (value or "").strip()
    if not tag:
        raise InvalidInput("tag cannot be empty")
    if not is_valid_tag(tag):
        raise InvalidInput(f"tag must be lowercase letters, digits or hyphens: {tag!r}")
    return tag


def create_task(doc: LogDocument, counters: TagCounters, tag: str, title: str, *, today: date) -> Task:
    tag = clean_tag(tag)
    title = clean_text(title)
    if not title:
        raise InvalidInput("title cannot be empty")

    label = format_date(today, doc.date_format)
    number = counters.reserve(tag)
    task = Task(tag=tag, number=number, title=title, section=label)

    header_idx = _last_section_index(doc, label)
    if header_idx is None:
        eol = "\n"
        if doc.entries:
            eol = _terminate(doc.entries[-1])
        last = doc.entries[-1] if doc.entries else None
        if last is not None and not (isinstance(last, RawLine) and not last.text.strip()):
            doc.entries.append(RawLine(text="", eol=eol))
        doc.entries.append(SectionHeader(text=f"{SECTION_MARKER} {label}", day=today, label=label, eol=eol))
        task.eol = eol
        doc.entries.append(task)
        return task

    insert_at = _section_insert_index(doc, header_idx)
    task.eol = _terminate(doc.entries[insert_at - 1])
    doc.entries.insert(insert_at, task)
    return task


def complete_task(doc: LogDocument, task_id: str) -> bool:
    task = find_task(doc, task_id)
    if task.done:
        return False
    task.done = True
    return True


def add_note(doc: LogDocument, task_id: str, text: str) -> Note:
    cleaned = clean_text(text)
    if not cleaned:
        raise InvalidInput("note text cannot be empty")
    task = find_task(doc, task_id)
    note = Note(text=cleaned, indent=doc.note_indent, eol=_terminate(task))
    task.notes.append(note)
    return note


def find_task(doc: LogDocument, task_id: str) -> Task:
    needle = (task_id or "").strip()
    found = doc.find_tasks(needle)
    if not found:
        raise TaskNotFound(needle)
    if len(found) > 1:
        raise DuplicateTaskId(needle, len(found))
    return found[0]


def search_tasks(doc: LogDocument, query: str, *, tag: str | None = None) -> list[Match]:
    needle = (query or "").strip().lower()
    wanted_tag = (tag or "").strip() or None
    matches: list[Match] = []
    for task in doc.tasks():
        if wanted_tag and task.tag != wanted_tag:
            continue
        snippet = _match_snippet(task, needle)
        if snippet is None:
            continue
        matches.append(
            Match(
                task_id=task.task_id,
                tag=task.tag,
                done=task.done,
                title=task.title,
                snippet=snippet,
                notes=tuple(note.text for note in task.notes),
                section=task.section,
            )
        )
    return matches


def today_section_text(doc: LogDocument, *, today: date) -> str:
    label = format_date(today, doc.date_format)
    header_idx = _last_section_index(doc, label)
    if header_idx is None:
        return ""
    end = _section_end_index(doc, header_idx)
    text = "".join(render_entry(entry) for entry in doc.entries[header_idx:end])
    return text.rstrip("\r\n")


def _match_snippet(task: Task, needle: str) -> str | None:
    if not needle or needle in task.title.lower():
        return task.title
    for note in task.notes:
        if needle in note.text.lower():
            return note.text
    return None


def _last_section_index(doc: LogDocument, label: str) -> int | None:
    found = None
    for idx, entry in enumerate(doc.entries):
        if isinstance(entry, SectionHeader) and entry.label == label:
            found = idx
    return found


def _section_end_index(doc: LogDocument, header_idx: int) -> int:
    for idx in range(header_idx + 1, len(doc.entries)):
        if isinstance(doc.entries[idx], SectionHeader):
            return idx
    return len(doc.entries)


def _section_insert_index(doc: LogDocument, header_idx: int) -> int:
    """Position just after the section's last non-blank line."""

    idx = _section_end_index(doc, header_idx)
    while idx - 1 > header_idx:
        entry = doc.entries[idx - 1]
        if isinstance(entry, RawLine) and not entry.text.strip():
            idx -= 1
            continue
        break
    return idx


def _terminate(entry: Entry) -> str:
    """Make sure the entry's last line ends with a line break; return that break."""

    line: Entry | Note = entry
    if isinstance(entry, Task) and entry.notes:
        line = entry.notes[-1]
    if not line.eol:
        line.eol = "\n"
    return line.eol
