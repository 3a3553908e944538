from __future__ import annotations

from dataclasses import dataclass, field

from .engine import Match


FOCUS_TAGS = "tags"
FOCUS_TASKS = "tasks"


@dataclass
class TaskBrowser:
    """Selection state behind the terminal app: tags on the left, that tag's tasks on the right."""

    matches: list[Match] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    tag_idx: int = 0
    task_idx: int = 0
    focus: str = FOCUS_TAGS
    search_query: str = ""

    def load(self, matches: list[Match]) -> None:
        current = self.selected_tag()
        self.matches = list(matches)
        self.tags = sorted({match.tag for match in self.matches})
        if current in self.tags:
            self.tag_idx = self.tags.index(current)
        self._clamp()

    def visible_tasks(self) -> list[Match]:
        tag = self.selected_tag()
        if tag is None:
            return []
        return [match for match in self.matches if match.tag == tag]

    def selected_tag(self) -> str | None:
        if not self.tags:
            return None
        return self.tags[min(self.tag_idx, len(self.tags) - 1)]

    def selected_task(self) -> Match | None:
        tasks = self.visible_tasks()
        if not tasks:
            return None
        return tasks[min(self.task_idx, len(tasks) - 1)]

    def toggle_focus(self) -> None:
        self.focus = FOCUS_TASKS if self.focus == FOCUS_TAGS else FOCUS_TAGS

    def move(self, delta: int) -> None:
        if self.focus == FOCUS_TAGS:
            if self.tags:
                self.tag_idx = max(0, min(len(self.tags) - 1, self.tag_idx + delta))
                self.task_idx = 0
            return
        count = len(self.visible_tasks())
        if count:
            self.task_idx = max(0, min(count - 1, self.task_idx + delta))

    def jump(self, *, end: bool) -> None:
        if self.focus == FOCUS_TAGS:
            self.tag_idx = len(self.tags) - 1 if end and self.tags else 0
            self.task_idx = 0
            return
        count = len(self.visible_tasks())
        self.task_idx = count - 1 if end and count else 0

    def render_tags(self) -> str:
        if not self.tags:
            return "no tasks in the scan window"
        lines = []
        for idx, tag in enumerate(self.tags):
            open_count = sum(1 for match in self.matches if match.tag == tag and not match.done)
            cursor = ">" if idx == self.tag_idx else " "
            lines.append(f"{cursor} {tag} ({open_count} open)")
        return "\n".join(lines)

    def render_tasks(self) -> str:
        tasks = self.visible_tasks()
        if not tasks:
            return ""
        lines = []
        for idx, match in enumerate(tasks):
            cursor = ">" if idx == self.task_idx and self.focus == FOCUS_TASKS else " "
            mark = "x" if match.done else " "
            lines.append(f"{cursor} [{mark}] {match.task_id} {match.title}")
        return "\n".join(lines)

    def render_detail(self) -> str:
        match = self.selected_task()
        if match is None:
            return ""
        lines = [
            f"{match.task_id} ({match.status})",
            f"section: {match.section}",
            "",
            match.title,
        ]
        if match.notes:
            lines.append("")
            lines.extend(f"- {text}" for text in match.notes)
        return "\n".join(lines)

    def _clamp(self) -> None:
        if not self.tags:
            self.tag_idx = 0
            self.task_idx = 0
            return
        self.tag_idx = min(self.tag_idx, len(self.tags) - 1)
        count = len(self.visible_tasks())
        self.task_idx = min(self.task_idx, count - 1) if count else 0
