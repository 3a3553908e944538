from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path


HOME_ENV = "TL_HOME"


def config_root() -> Path:
    """Directory holding config, counter state, lock and audit log.

    `$TL_HOME` wins; otherwise `~/.config/tl`.
    """

    override = os.environ.get(HOME_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "tl"


@dataclass(frozen=True)
class TaskLogPaths:
    root: Path
    config_toml: Path
    state_json: Path
    lock: Path
    events_log: Path


def tasklog_paths(root: Path | None = None) -> TaskLogPaths:
    root = root if root is not None else config_root()
    return TaskLogPaths(
        root=root,
        config_toml=root / "config.toml",
        state_json=root / "state.json",
        lock=root / "lock",
        events_log=root / "events.jsonl",
    )


def ensure_config_dir(paths: TaskLogPaths | None = None) -> TaskLogPaths:
    paths = paths or tasklog_paths()
    paths.root.mkdir(parents=True, exist_ok=True)
    return paths


def resolve_log_path(raw: str, root: Path) -> Path:
    """Expand `~`; relative paths are taken relative to the config dir."""

    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = root / path
    return path
