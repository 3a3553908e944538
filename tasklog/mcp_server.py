from __future__ import annotations

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from .engine import format_match, printable
from .errors import TaskLogError
from .store import TaskLog, init


MCP_SERVER_NAME = "tl"

mcp = FastMCP(
    MCP_SERVER_NAME,
    instructions=(
        "Task log tool. Use create_task to add tasks, complete_task to mark done, "
        "add_note to annotate, search_tasks to find tasks, get_today_section to read today's log."
    ),
)


def _tool_error(exc: TaskLogError) -> ToolError:
    return ToolError(printable(f"{exc.kind}: {exc}"))


@mcp.tool()
def init_log() -> str:
    """Initialize the task log environment. Creates config, log, and state files if missing."""
    try:
        tasklog = init()
    except TaskLogError as exc:
        raise _tool_error(exc) from exc
    return f"Task log initialized at {tasklog.log_path}"


@mcp.tool()
def create_task(tag: str, title: str) -> str:
    """Create a new task with a tag (e.g. "infra") and a title. Returns the assigned task ID."""
    try:
        task_id = TaskLog.load().create_task(tag, title)
    except TaskLogError as exc:
        raise _tool_error(exc) from exc
    return f"Created task: {task_id}"


@mcp.tool()
def complete_task(id: str) -> str:  # noqa: A002
    """Mark a task as completed by its ID (e.g. 'infra-12')."""
    try:
        changed = TaskLog.load().complete_task(id)
    except TaskLogError as exc:
        raise _tool_error(exc) from exc
    if not changed:
        return f"Task already completed: {id}"
    return f"Completed task: {id}"


@mcp.tool()
def add_note(id: str, text: str) -> str:  # noqa: A002
    """Add a note to an existing task by its ID."""
    try:
        TaskLog.load().add_note(id, text)
    except TaskLogError as exc:
        raise _tool_error(exc) from exc
    return f"Note added to task: {id}"


@mcp.tool()
def search_tasks(query: str, tag: str | None = None) -> str:
    """Search task titles and notes (case-insensitive). Optionally filter by tag."""
    try:
        tasklog = TaskLog.load()
        matches = tasklog.search_tasks(query, tag=tag)
    except TaskLogError as exc:
        raise _tool_error(exc) from exc
    if not matches:
        return f"No tasks found matching '{query}'"
    lines: list[str] = []
    for match in matches:
        lines.extend(format_match(match, note_indent=tasklog.config.note_indent))
    return printable("\n".join(lines) + "\n")


@mcp.tool()
def get_today_section() -> str:
    """Get the raw text of today's section from the log (empty when there is none yet)."""
    try:
        return printable(TaskLog.load().get_today_section())
    except TaskLogError as exc:
        raise _tool_error(exc) from exc


def run_mcp_server() -> int:
    mcp.run(transport="stdio")
    return 0
