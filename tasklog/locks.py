from __future__ import annotations

from contextlib import contextmanager
import math
from pathlib import Path
import time
from typing import IO, Iterator

from .errors import InvalidInput, IOFailure, LockTimeout, TaskLogError


LOCK_POLL_S = 0.05


@contextmanager
def write_lock(lock_path: Path, *, timeout_s: float) -> Iterator[IO[str]]:
    """Hold the exclusive advisory lock that serializes log writers.

    Blocks for at most `timeout_s`. The lock is not reentrant: acquiring it
    again from inside the block waits on ourselves and times out.
    """

    if not math.isfinite(timeout_s) or timeout_s < 0:
        raise InvalidInput(f"lock timeout must be a finite number of seconds >= 0 (got {timeout_s!r})")

    try:
        import fcntl  # type: ignore
    except ModuleNotFoundError:
        raise TaskLogError("write locks require fcntl (not available on this platform).")

    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        handle = lock_path.open("a+", encoding="utf-8")
    except OSError as exc:
        raise IOFailure(f"failed opening lock file {lock_path}: {exc}") from exc

    try:
        deadline = time.monotonic() + float(timeout_s)
        while True:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    raise LockTimeout(f"timed out after {timeout_s:g}s waiting for {lock_path}")
                time.sleep(LOCK_POLL_S)
            except OSError as exc:
                raise IOFailure(f"failed locking {lock_path}: {exc}") from exc
        try:
            yield handle
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    finally:
        handle.close()
