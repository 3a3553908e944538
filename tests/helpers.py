from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Iterator
from unittest.mock import patch

from tasklog.paths import HOME_ENV
from tasklog.store import TaskLog, init


TODAY = date(2026, 3, 14)
TODAY_LABEL = "14/03/2026"


@contextmanager
def temp_home() -> Iterator[Path]:
    """A throwaway config dir, exported through TL_HOME for the duration."""

    with TemporaryDirectory() as tmp:
        home = Path(tmp) / "tl-home"
        with patch.dict("os.environ", {HOME_ENV: str(home)}):
            yield home


def make_tasklog(home: Path, content: str = "", **config: object) -> TaskLog:
    """Initialize under `home`, optionally seed the log and override config keys."""

    if config:
        home.mkdir(parents=True, exist_ok=True)
        lines = []
        for key, value in config.items():
            if isinstance(value, str):
                lines.append(f'{key} = "{value}"')
            else:
                lines.append(f"{key} = {value}")
        (home / "config.toml").write_text("\n".join(lines) + "\n", encoding="utf-8")
    tasklog = init(home=home)
    if content:
        tasklog.log_path.write_bytes(content.encode("utf-8"))
    return tasklog


def read_log(tasklog: TaskLog) -> str:
    return tasklog.log_path.read_bytes().decode("utf-8")
