from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, Union

from .classify import LineKind, classify_line


@dataclass
class RawLine:
    """A line the tool does not own; reproduced byte for byte."""

    text: str
    eol: str = "\n"


@dataclass
class SectionHeader:
    text: str
    day: date
    label: str
    eol: str = "\n"


@dataclass
class Note:
    text: str
    indent: int
    eol: str = "\n"


@dataclass
class Task:
    tag: str
    number: int
    title: str
    done: bool = False
    notes: list[Note] = field(default_factory=list)
    section: str = ""
    eol: str = "\n"

    @property
    def task_id(self) -> str:
        return f"{self.tag}-{self.number}"

    @property
    def status(self) -> str:
        return "done" if self.done else "open"


Entry = Union[RawLine, SectionHeader, Task]


@dataclass
class LogDocument:
    """The trailing scan window of a log, modeled; everything above it kept verbatim."""

    head: str
    entries: list[Entry]
    date_format: str
    note_indent: int

    def tasks(self) -> Iterator[Task]:
        for entry in self.entries:
            if isinstance(entry, Task):
                yield entry

    def find_tasks(self, task_id: str) -> list[Task]:
        return [task for task in self.tasks() if task.task_id == task_id]


def split_lines(content: str) -> list[tuple[str, str]]:
    """Split into (text, terminator) pairs; joining them restores `content` exactly."""

    if not content:
        return []
    pieces = content.split("\n")
    lines: list[tuple[str, str]] = []
    for piece in pieces[:-1]:
        if piece.endswith("\r"):
            lines.append((piece[:-1], "\r\n"))
        else:
            lines.append((piece, "\n"))
    if pieces[-1]:
        lines.append((pieces[-1], ""))
    return lines


def build_document(content: str, *, date_format: str, note_indent: int, scan_window_lines: int) -> LogDocument:
    lines = split_lines(content)
    start = max(0, len(lines) - max(1, scan_window_lines))
    head = "".join(text + eol for text, eol in lines[:start])

    entries: list[Entry] = []
    previous: LineKind | None = None
    current_task: Task | None = None
    current_section: SectionHeader | None = None

    for text, eol in lines[start:]:
        classified = classify_line(text, date_format=date_format, note_indent=note_indent, previous=previous)
        kind = classified.kind

        if kind is LineKind.SECTION and classified.day is not None:
            current_section = SectionHeader(
                text=text,
                day=classified.day,
                label=text.split(" ", 1)[1],
                eol=eol,
            )
            entries.append(current_section)
            current_task = None
        elif kind is LineKind.TASK and current_section is not None:
            current_task = Task(
                tag=classified.tag,
                number=classified.number,
                title=classified.title,
                done=classified.done,
                section=current_section.label,
                eol=eol,
            )
            entries.append(current_task)
        elif kind is LineKind.NOTE and current_task is not None:
            current_task.notes.append(Note(text=classified.note, indent=note_indent, eol=eol))
        else:
            # Tasks whose section header sits above the window stay freeform.
            kind = LineKind.FREEFORM
            entries.append(RawLine(text=text, eol=eol))
            current_task = None
        previous = kind

    return LogDocument(
        head=head,
        entries=entries,
        date_format=date_format,
        note_indent=note_indent,
    )


def render_task(task: Task) -> str:
    mark = "x" if task.done else " "
    parts = [f"- [{mark}] {task.task_id} {task.title}{task.eol}"]
    for note in task.notes:
        parts.append(f"{' ' * note.indent}- {note.text}{note.eol}")
    return "".join(parts)


def render_entry(entry: Entry) -> str:
    if isinstance(entry, Task):
        return render_task(entry)
    return entry.text + entry.eol


def render_document(doc: LogDocument) -> str:
    return doc.head + "".join(render_entry(entry) for entry in doc.entries)
