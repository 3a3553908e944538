from __future__ import annotations

from collections.abc import Callable
import contextlib
from datetime import datetime, timezone
import json
import os
import secrets
import time
from pathlib import Path
from typing import Any

EventHandler = Callable[[dict[str, Any]], Any]


def utc_now_iso() -> str:
    return datetime.now(tz=timezone.utc).replace(microsecond=0).isoformat()


def new_event_id() -> str:
    stamp = int(time.time() * 1000)
    token = secrets.token_hex(4)
    return f"evt-{stamp}-{token}"


class EventBus:
    """Audit trail of committed mutations: JSONL on disk plus in-process subscribers.

    Appending is best effort. A write that already reached the log is never
    reported as failed because its audit line could not be stored.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._handlers: list[EventHandler] = []
        self.events_written = 0

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._handlers.remove(handler)

        return _unsubscribe

    def publish_event(
        self,
        event_type: str,
        message: str,
        *,
        severity: str = "info",
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        event = {
            "id": new_event_id(),
            "ts": utc_now_iso(),
            "type": str(event_type or "tasklog.event"),
            "severity": str(severity or "info").lower(),
            "pid": os.getpid(),
            "message": str(message or ""),
            "metadata": metadata or {},
        }
        self._append_to_disk(event)
        self._dispatch(event)
        return event

    def _append_to_disk(self, event: dict[str, Any]) -> None:
        if self._log_path is None:
            return
        line = json.dumps(event, sort_keys=True, ensure_ascii=True) + "\n"
        try:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._log_path.open("a", encoding="utf-8") as handle:
                handle.write(line)
        except OSError:
            return
        self.events_written += 1

    def _dispatch(self, event: dict[str, Any]) -> None:
        for handler in list(self._handlers):
            with contextlib.suppress(Exception):
                handler(event)


def read_events(path: Path, *, limit: int = 50) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    events: list[dict[str, Any]] = []
    for raw in path.read_text(encoding="utf-8").splitlines()[-max(1, limit) :]:
        try:
            item = json.loads(raw)
        except ValueError:
            continue
        if isinstance(item, dict):
            events.append(item)
    return events
