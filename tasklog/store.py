from __future__ import annotations

from dataclasses import replace
from datetime import date
import os
from pathlib import Path
import tempfile
from typing import Callable, TypeVar

from . import engine
from .config import TaskLogConfig, load_config, render_config
from .counters import TagCounters, load_counters
from .document import LogDocument, Task, build_document, render_document
from .engine import Match
from .errors import IOFailure, NotInitialized
from .events import EventBus
from .locks import write_lock
from .paths import TaskLogPaths, ensure_config_dir, resolve_log_path, tasklog_paths


T = TypeVar("T")

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _today() -> date:
    return date.today()


def atomic_write(path: Path, data: bytes) -> None:
    """Replace `path` with `data` via a synced temp file in the same directory."""

    directory = path.parent
    mode = None
    try:
        mode = path.stat().st_mode & 0o7777
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise IOFailure(f"failed inspecting {path}: {exc}") from exc

    tmp_name = ""
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(prefix=f".{path.name}.", suffix=".tmp", dir=directory, delete=False) as handle:
            tmp_name = handle.name
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        tmp_name = ""
    except OSError as exc:
        raise IOFailure(f"failed writing {path}: {exc}") from exc
    finally:
        if tmp_name:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass


def read_log(path: Path) -> str:
    try:
        data = path.read_bytes()
    except FileNotFoundError as exc:
        raise NotInitialized(f"missing log file {path}") from exc
    except OSError as exc:
        raise IOFailure(f"failed reading {path}: {exc}") from exc
    return data.decode(_ENCODING, errors=_ERRORS)


class TaskLog:
    """Entry point shared by the CLI, the terminal app and the MCP server.

    Every mutating call is one critical section: lock, read, model the scan
    window, apply a single operation, write counters then log atomically,
    unlock. Reads skip the lock; writers only ever swap whole files.
    """

    def __init__(
        self,
        config: TaskLogConfig,
        *,
        paths: TaskLogPaths | None = None,
        bus: EventBus | None = None,
        config_warning: str = "",
    ) -> None:
        self.config = config
        self.config_warning = config_warning
        self.paths = paths or tasklog_paths()
        self.bus = bus or EventBus(self.paths.events_log)
        self.log_path = resolve_log_path(config.log_path, self.paths.root)

    @classmethod
    def load(cls, *, home: Path | None = None, bus: EventBus | None = None) -> "TaskLog":
        paths = tasklog_paths(home)
        if not paths.config_toml.exists():
            raise NotInitialized(f"missing {paths.config_toml}")
        config, warning = load_config(paths.config_toml)
        return cls(config, paths=paths, bus=bus, config_warning=warning)

    def create_task(self, tag: str, title: str, *, today: date | None = None) -> str:
        day = today or _today()

        def _op(doc: LogDocument, counters: TagCounters) -> Task:
            return engine.create_task(doc, counters, tag, title, today=day)

        task = self._mutate(_op)
        self.bus.publish_event(
            "task.created",
            f"created {task.task_id}",
            metadata={"id": task.task_id, "title": task.title, "section": task.section},
        )
        return task.task_id

    def complete_task(self, task_id: str) -> bool:
        changed = self._mutate(lambda doc, _counters: engine.complete_task(doc, task_id))
        if changed:
            self.bus.publish_event("task.completed", f"completed {task_id.strip()}", metadata={"id": task_id.strip()})
        return changed

    def add_note(self, task_id: str, text: str) -> None:
        note = self._mutate(lambda doc, _counters: engine.add_note(doc, task_id, text))
        self.bus.publish_event("task.noted", f"noted on {task_id.strip()}", metadata={"id": task_id.strip(), "text": note.text})

    def search_tasks(self, query: str, tag: str | None = None) -> list[Match]:
        return engine.search_tasks(self.read_document(), query, tag=tag)

    def get_today_section(self, *, today: date | None = None) -> str:
        return engine.today_section_text(self.read_document(), today=today or _today())

    def read_document(self) -> LogDocument:
        return self._build(read_log(self.log_path))

    def _build(self, content: str) -> LogDocument:
        return build_document(
            content,
            date_format=self.config.date_format,
            note_indent=self.config.note_indent,
            scan_window_lines=self.config.scan_window_lines,
        )

    def _mutate(self, operation: Callable[[LogDocument, TagCounters], T]) -> T:
        with write_lock(self.paths.lock, timeout_s=self.config.lock_timeout_s):
            content = read_log(self.log_path)
            counters = load_counters(self.paths.state_json)
            doc = self._build(content)
            result = operation(doc, counters)
            updated = render_document(doc)
            # Counters first: a failed log write may skip a number, never repeat one.
            if counters.dirty:
                atomic_write(self.paths.state_json, counters.to_json().encode(_ENCODING))
            if updated != content:
                atomic_write(self.log_path, updated.encode(_ENCODING, errors=_ERRORS))
        return result


def init(
    log_path: str | None = None,
    *,
    home: Path | None = None,
    bus: EventBus | None = None,
) -> TaskLog:
    """Create config, counter state and log when missing; point config at `log_path` when given."""

    paths = tasklog_paths(home)
    try:
        ensure_config_dir(paths)
    except OSError as exc:
        raise IOFailure(f"failed creating {paths.root}: {exc}") from exc

    config, warning = load_config(paths.config_toml)
    if log_path is not None and log_path.strip():
        if config.log_path != log_path.strip() or not paths.config_toml.exists():
            config = replace(config, log_path=log_path.strip())
            atomic_write(paths.config_toml, render_config(config).encode(_ENCODING))
    elif not paths.config_toml.exists():
        atomic_write(paths.config_toml, render_config(config).encode(_ENCODING))

    tasklog = TaskLog(config, paths=paths, bus=bus, config_warning=warning)
    with write_lock(paths.lock, timeout_s=config.lock_timeout_s):
        if not paths.state_json.exists():
            atomic_write(paths.state_json, TagCounters().to_json().encode(_ENCODING))
        if not tasklog.log_path.exists():
            atomic_write(tasklog.log_path, b"")
    tasklog.bus.publish_event(
        "log.initialized",
        f"initialized at {paths.root}",
        metadata={"log_path": str(tasklog.log_path)},
    )
    return tasklog
