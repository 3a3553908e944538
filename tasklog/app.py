from __future__ import annotations

from typing import Any

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Footer, Input, Static

from .browser import TaskBrowser
from .engine import printable
from .errors import TaskLogError
from .store import TaskLog


LOG_POLL_INTERVAL_S = 2.0

PROMPTS = {
    "add": "new task: <tag> <title>",
    "note": "note text",
    "search": "search titles and notes (empty clears)",
}


class TaskLogApp(App[None]):
    CSS = """
    Screen {
        layout: vertical;
    }

    #status-bar {
        height: 1;
        padding: 0 1;
        background: $boost;
        color: $text;
    }

    #main {
        height: 1fr;
    }

    #panel-tags {
        width: 1fr;
        border: solid $secondary;
        padding: 0 1;
    }

    #panel-tasks {
        width: 3fr;
        border: solid $accent;
        padding: 0 1;
    }

    #panel-detail {
        width: 2fr;
        border: solid $primary;
        padding: 0 1;
    }

    #prompt {
        margin: 0;
        border: solid $border;
    }

    Footer {
        dock: none;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("tab", "toggle_focus", "Switch Panel"),
        ("j", "move(1)", "Down"),
        ("down", "move(1)", "Down"),
        ("k", "move(-1)", "Up"),
        ("up", "move(-1)", "Up"),
        ("g", "jump(False)", "Top"),
        ("home", "jump(False)", "Top"),
        ("end", "jump(True)", "Bottom"),
        ("x", "complete", "Done"),
        ("a", "prompt('add')", "Add"),
        ("n", "prompt('note')", "Note"),
        ("slash", "prompt('search')", "Search"),
        ("r", "refresh", "Refresh"),
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, tasklog: TaskLog) -> None:
        super().__init__()
        self.tasklog = tasklog
        self.browser = TaskBrowser()
        self.prompt_mode: str | None = None
        self.status_msg = "a add | n note | x done | / search | tab switch | q quit"
        self._log_stamp: int | None = None
        self._unsubscribe = None

        self.status_bar: Static
        self.tags_panel: Static
        self.tasks_panel: Static
        self.detail_panel: Static
        self.prompt_box: Input

    def compose(self) -> ComposeResult:
        yield Static("", id="status-bar", markup=False)
        with Horizontal(id="main"):
            yield Static("", id="panel-tags", markup=False)
            yield Static("", id="panel-tasks", markup=False)
            yield Static("", id="panel-detail", markup=False)
        yield Input(id="prompt")
        yield Footer()

    def on_mount(self) -> None:
        self.status_bar = self.query_one("#status-bar", Static)
        self.tags_panel = self.query_one("#panel-tags", Static)
        self.tasks_panel = self.query_one("#panel-tasks", Static)
        self.detail_panel = self.query_one("#panel-detail", Static)
        self.prompt_box = self.query_one("#prompt", Input)
        self.prompt_box.display = False
        self._unsubscribe = self.tasklog.bus.subscribe(self._on_event)
        if self.tasklog.config_warning:
            self.status_msg = f"warning: {self.tasklog.config_warning}"
        self.action_refresh()
        self.set_interval(LOG_POLL_INTERVAL_S, self._poll_log)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()

    def action_toggle_focus(self) -> None:
        self.browser.toggle_focus()
        self._render_panels()

    def action_move(self, delta: int) -> None:
        self.browser.move(delta)
        self._render_panels()

    def action_jump(self, end: bool) -> None:
        self.browser.jump(end=end)
        self._render_panels()

    def action_refresh(self) -> None:
        try:
            query = self.browser.search_query
            self.browser.load(self.tasklog.search_tasks(query))
            self._log_stamp = self._current_stamp()
        except TaskLogError as exc:
            self.status_msg = f"error: {exc}"
        self._render_panels()

    def action_complete(self) -> None:
        match = self.browser.selected_task()
        if match is None:
            self.status_msg = "no task selected"
            self._render_panels()
            return
        self._run(lambda: self.tasklog.complete_task(match.task_id), f"{match.task_id} already done")

    def action_prompt(self, mode: str) -> None:
        if mode == "note" and self.browser.selected_task() is None:
            self.status_msg = "select a task to note on"
            self._render_panels()
            return
        self.prompt_mode = mode
        self.prompt_box.placeholder = PROMPTS.get(mode, "")
        self.prompt_box.value = self.browser.search_query if mode == "search" else ""
        self.prompt_box.display = True
        self.prompt_box.focus()

    def action_cancel(self) -> None:
        self._close_prompt()
        self._render_panels()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        mode = self.prompt_mode
        value = event.value
        self._close_prompt()
        if mode == "add":
            tag, _, title = value.strip().partition(" ")
            self._run(lambda: self.tasklog.create_task(tag, title), "")
        elif mode == "note":
            match = self.browser.selected_task()
            if match is not None:
                self._run(lambda: self.tasklog.add_note(match.task_id, value), "")
        elif mode == "search":
            self.browser.search_query = value.strip()
            self.status_msg = f"search: {self.browser.search_query}" if self.browser.search_query else "search cleared"
            self.action_refresh()

    def _run(self, operation, unchanged_msg: str) -> None:
        try:
            result = operation()
        except TaskLogError as exc:
            self.status_msg = f"error: {exc}"
            self._render_panels()
            return
        if result is False and unchanged_msg:
            self.status_msg = unchanged_msg
        self.action_refresh()

    def _on_event(self, event: dict[str, Any]) -> None:
        self.status_msg = str(event.get("message") or "")

    def _close_prompt(self) -> None:
        self.prompt_mode = None
        self.prompt_box.value = ""
        self.prompt_box.display = False
        self.set_focus(None)

    def _current_stamp(self) -> int | None:
        try:
            return self.tasklog.log_path.stat().st_mtime_ns
        except OSError:
            return None

    def _poll_log(self) -> None:
        if self.prompt_mode is not None:
            return
        if self._current_stamp() != self._log_stamp:
            self.action_refresh()

    def _render_panels(self) -> None:
        self.status_bar.update(printable(self.status_msg))
        self.tags_panel.update(printable(self.browser.render_tags()))
        self.tasks_panel.update(printable(self.browser.render_tasks()))
        self.detail_panel.update(printable(self.browser.render_detail()))


def run_terminal_app(tasklog: TaskLog) -> int:
    app = TaskLogApp(tasklog)
    app.run()
    return 0
