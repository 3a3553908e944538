from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path

from .errors import CounterStateCorrupt, InvalidInput, IOFailure, NotInitialized
from .classify import is_valid_tag


@dataclass
class TagCounters:
    """Next number to hand out per tag.

    Numbers are never reconciled against what is already in the log: a
    hand-typed `dev-50` leaves the `dev` counter alone.
    """

    values: dict[str, int] = field(default_factory=dict)
    dirty: bool = False

    def peek(self, tag: str) -> int:
        return self.values.get(tag, 1)

    def reserve(self, tag: str) -> int:
        if not is_valid_tag(tag):
            raise InvalidInput(f"invalid tag: {tag!r}")
        number = self.peek(tag)
        self.values[tag] = number + 1
        self.dirty = True
        return number

    def to_json(self) -> str:
        return json.dumps(self.values, indent=2, sort_keys=True, ensure_ascii=True) + "\n"


def parse_counters(text: str, *, source: str = "state.json") -> TagCounters:
    if not text.strip():
        return TagCounters()
    try:
        raw = json.loads(text)
    except ValueError as exc:
        raise CounterStateCorrupt(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise CounterStateCorrupt(f"{source} must hold a JSON object of tag -> next number")
    values: dict[str, int] = {}
    for tag, value in raw.items():
        if not isinstance(tag, str) or not is_valid_tag(tag):
            raise CounterStateCorrupt(f"{source} has an invalid tag: {tag!r}")
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise CounterStateCorrupt(f"{source} has an invalid counter for {tag}: {value!r}")
        values[tag] = value
    return TagCounters(values=values)


def load_counters(path: Path) -> TagCounters:
    if not path.exists():
        raise NotInitialized(f"missing {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise CounterStateCorrupt(f"{path.name} is not UTF-8: {exc}") from exc
    except OSError as exc:
        raise IOFailure(f"failed reading {path}: {exc}") from exc
    return parse_counters(text, source=path.name)
