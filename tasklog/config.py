from __future__ import annotations

from dataclasses import dataclass
import json
import math
from pathlib import Path
import tomllib

from .classify import DEFAULT_DATE_FORMAT, date_format_problem
from .errors import ConfigError, IOFailure


def _as_float(value, *, default: float, name: str, problems: list[str]) -> float:
    if value is None:
        return float(default)
    if isinstance(value, bool):
        problems.append(f"{name} must be a number (got {value!r})")
        return float(default)
    try:
        result = float(value)
    except (TypeError, ValueError):
        problems.append(f"{name} must be a number (got {value!r})")
        return float(default)
    if not math.isfinite(result):
        problems.append(f"{name} must be finite (got {value!r})")
        return float(default)
    return result


def _as_int(value, *, default: int, name: str, problems: list[str]) -> int:
    if value is None:
        return int(default)
    if isinstance(value, bool):
        problems.append(f"{name} must be an integer (got {value!r})")
        return int(default)
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        problems.append(f"{name} must be an integer (got {value!r})")
        return int(default)


@dataclass(frozen=True)
class TaskLogConfig:
    log_path: str = "log.md"
    date_format: str = DEFAULT_DATE_FORMAT
    note_indent: int = 6
    scan_window_lines: int = 5000
    lock_timeout_s: float = 10.0


def parse_config(data: dict) -> tuple[TaskLogConfig, str]:
    """Build a config from a parsed TOML table.

    Returns (config, warning). Invalid fields fall back to defaults and are
    listed in the warning.
    """

    problems: list[str] = []

    log_path = data.get("log_path")
    if log_path is None:
        log_path = TaskLogConfig.log_path
    elif not isinstance(log_path, str) or not log_path.strip():
        problems.append("log_path must be a non-empty string")
        log_path = TaskLogConfig.log_path

    date_format = data.get("date_format")
    if date_format is None:
        date_format = TaskLogConfig.date_format
    elif not isinstance(date_format, str) or date_format_problem(date_format):
        problem = date_format_problem(date_format) if isinstance(date_format, str) else "date_format must be a string"
        problems.append(problem)
        date_format = TaskLogConfig.date_format

    note_indent = _as_int(
        data.get("note_indent"), default=TaskLogConfig.note_indent, name="note_indent", problems=problems
    )
    if note_indent < 1:
        problems.append(f"note_indent must be >= 1 (got {note_indent})")
        note_indent = TaskLogConfig.note_indent

    scan_window_lines = _as_int(
        data.get("scan_window_lines"), default=TaskLogConfig.scan_window_lines, name="scan_window_lines", problems=problems
    )
    if scan_window_lines < 1:
        problems.append(f"scan_window_lines must be >= 1 (got {scan_window_lines})")
        scan_window_lines = TaskLogConfig.scan_window_lines

    lock_timeout_s = _as_float(
        data.get("lock_timeout_s"), default=TaskLogConfig.lock_timeout_s, name="lock_timeout_s", problems=problems
    )
    if lock_timeout_s <= 0:
        problems.append(f"lock_timeout_s must be > 0 (got {lock_timeout_s})")
        lock_timeout_s = TaskLogConfig.lock_timeout_s

    cfg = TaskLogConfig(
        log_path=log_path.strip(),
        date_format=date_format,
        note_indent=note_indent,
        scan_window_lines=scan_window_lines,
        lock_timeout_s=lock_timeout_s,
    )
    warning = ""
    if problems:
        warning = "config.toml: " + "; ".join(problems) + " (defaults used)"
    return cfg, warning


def load_config(path: Path) -> tuple[TaskLogConfig, str]:
    """Load config.toml. A missing file yields defaults; unparseable TOML raises."""

    if not path.exists():
        return TaskLogConfig(), ""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IOFailure(f"failed reading {path}: {exc}") from exc
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"config.toml parse failed: {exc}") from exc
    return parse_config(data)


def _toml_string(value: str) -> str:
    # JSON string escapes are a subset of TOML basic-string escapes.
    return json.dumps(value, ensure_ascii=False)


def render_config(config: TaskLogConfig) -> str:
    lines = [
        f"log_path = {_toml_string(config.log_path)}",
        f"date_format = {_toml_string(config.date_format)}",
        f"note_indent = {int(config.note_indent)}",
        f"scan_window_lines = {int(config.scan_window_lines)}",
        f"lock_timeout_s = {float(config.lock_timeout_s)}",
    ]
    return "\n".join(lines) + "\n"


def explain_config(config: TaskLogConfig, *, path: Path | None = None) -> str:
    location = str(path) if path is not None else "config.toml"
    lines = [
        f"config guide ({location})",
        f"- log_path: markdown log file, relative paths resolve next to the config (current: {config.log_path})",
        f"- date_format: section header date, DD/MM/YYYY tokens or a strftime pattern (current: {config.date_format})",
        f"- note_indent: spaces before a note bullet (current: {config.note_indent})",
        f"- scan_window_lines: trailing lines parsed per operation (current: {config.scan_window_lines})",
        f"- lock_timeout_s: seconds to wait for the write lock (current: {config.lock_timeout_s})",
    ]
    return "\n".join(lines)
