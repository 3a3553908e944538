from __future__ import annotations

import argparse
from pathlib import Path
import sys

from . import __version__
from .config import explain_config
from .engine import format_match, printable
from .errors import TaskLogError
from .events import read_events
from .store import TaskLog, init


def _emit(message: str, *, stderr: bool = False) -> None:
    print(printable(message), file=sys.stderr if stderr else sys.stdout)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tl",
        description="tl: trackable tasks inside a plain markdown log",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="cmd", required=True)

    init_cmd = sub.add_parser("init", help="Create config, counter state and log file.")
    init_cmd.add_argument("--log", help="Path to an existing (or new) markdown log file")

    add = sub.add_parser("add", help="Add a task under today's section: tl add <tag> <title>")
    add.add_argument("tag", help='Task tag (lowercase letters, digits, hyphens, e.g. "infra")')
    add.add_argument("title", nargs="+", help="Task title")

    done = sub.add_parser("done", help="Mark a task as done: tl done <id>")
    done.add_argument("id", help='Task ID (e.g. "infra-12")')

    note = sub.add_parser("note", help="Add a note under a task: tl note <id> <text>")
    note.add_argument("id", help='Task ID (e.g. "infra-12")')
    note.add_argument("text", nargs="+", help="Note text")

    search = sub.add_parser("search", help="Search task titles and notes.")
    search.add_argument("query", nargs="*", help="Search text (empty lists every task)")
    search.add_argument("--tag", help="Only tasks with this tag")

    sub.add_parser("today", help="Print today's section.")
    sub.add_parser("config", help="Explain the active config.")

    events = sub.add_parser("events", help="Show recent audit events.")
    events.add_argument("--limit", type=int, default=20, help="Number of events to show")

    sub.add_parser("tui", help="Open the interactive terminal app.")
    sub.add_parser("mcp", help="Serve the task log as MCP tools over stdio.")
    return parser


def cmd_init(args: argparse.Namespace) -> int:
    log_path = None
    if args.log:
        log_path = str(Path(args.log).expanduser().resolve())
    tasklog = init(log_path)
    if tasklog.config_warning:
        _emit(f"warning: {tasklog.config_warning}", stderr=True)
    _emit(f"initialized at {tasklog.paths.root}")
    _emit(f"log file: {tasklog.log_path}")
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    task_id = _load().create_task(args.tag, " ".join(args.title))
    _emit(f"created {task_id}")
    return 0


def cmd_done(args: argparse.Namespace) -> int:
    changed = _load().complete_task(args.id)
    if changed:
        _emit(f"completed {args.id}")
    else:
        _emit(f"{args.id} was already done")
    return 0


def cmd_note(args: argparse.Namespace) -> int:
    _load().add_note(args.id, " ".join(args.text))
    _emit(f"noted on {args.id}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    query = " ".join(args.query)
    tasklog = _load()
    matches = tasklog.search_tasks(query, tag=args.tag)
    if not matches:
        _emit(f'no tasks found matching "{query}"')
        return 0
    for match in matches:
        _emit("\n".join(format_match(match, note_indent=tasklog.config.note_indent)))
    return 0


def cmd_today(args: argparse.Namespace) -> int:
    text = _load().get_today_section()
    if not text:
        _emit("no section for today yet")
        return 0
    _emit(text)
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    tasklog = _load()
    _emit(explain_config(tasklog.config, path=tasklog.paths.config_toml))
    _emit(f"- resolved log file: {tasklog.log_path}")
    return 0


def cmd_events(args: argparse.Namespace) -> int:
    tasklog = _load()
    events = read_events(tasklog.paths.events_log, limit=args.limit)
    if not events:
        _emit("no events recorded")
        return 0
    for event in events:
        _emit(f"{event.get('ts', '?')} [{event.get('type', '?')}] {event.get('message', '')}")
    return 0


def cmd_tui(args: argparse.Namespace) -> int:
    try:
        from .app import run_terminal_app
    except ModuleNotFoundError as exc:
        if exc.name == "textual":
            _emit("Interactive app requires `textual`. Install tasklog with its dependencies, then retry.", stderr=True)
            return 1
        raise
    return run_terminal_app(_load())


def cmd_mcp(args: argparse.Namespace) -> int:
    try:
        from .mcp_server import run_mcp_server
    except ModuleNotFoundError as exc:
        if exc.name and exc.name.split(".")[0] == "mcp":
            _emit("MCP server requires the `mcp` package. Install tasklog with its dependencies, then retry.", stderr=True)
            return 1
        raise
    return run_mcp_server()


def _load() -> TaskLog:
    tasklog = TaskLog.load()
    if tasklog.config_warning:
        _emit(f"warning: {tasklog.config_warning}", stderr=True)
    return tasklog


_COMMANDS = {
    "init": cmd_init,
    "add": cmd_add,
    "done": cmd_done,
    "note": cmd_note,
    "search": cmd_search,
    "today": cmd_today,
    "config": cmd_config,
    "events": cmd_events,
    "tui": cmd_tui,
    "mcp": cmd_mcp,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    handler = _COMMANDS.get(args.cmd)
    if handler is None:
        parser.error(f"Unknown command: {args.cmd}")
        return 2
    try:
        return handler(args)
    except TaskLogError as exc:
        _emit(f"error: {exc}", stderr=True)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
