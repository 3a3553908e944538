from __future__ import annotations


class TaskLogError(RuntimeError):
    """Base class for every failure the core surfaces to a front end."""

    kind = "error"


class InvalidInput(TaskLogError):
    kind = "invalid_input"


class TaskNotFound(TaskLogError):
    kind = "task_not_found"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id


class DuplicateTaskId(TaskLogError):
    kind = "duplicate_task_id"

    def __init__(self, task_id: str, count: int) -> None:
        super().__init__(f"task id {task_id} appears {count} times in the log; fix it by hand")
        self.task_id = task_id
        self.count = count


class LockTimeout(TaskLogError):
    kind = "lock_timeout"


class IOFailure(TaskLogError):
    kind = "io_failure"


class CounterStateCorrupt(TaskLogError):
    kind = "counter_state_corrupt"


class ConfigError(TaskLogError):
    kind = "config_error"


class NotInitialized(TaskLogError):
    kind = "not_initialized"

    def __init__(self, detail: str = "") -> None:
        message = "not initialized. run `tl init` first."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
