"""
WHFF-enD Release — Exclusive pipeline lock.

Two release runs in the same working tree would interleave git commands
on one index. The lock file is created with O_EXCL and holds the owning
RunLock as JSON; a lock whose pid is gone (or that cannot be parsed) is
stale and is taken over.
"""

from __future__ import annotations

import os
from pathlib import Path

from whff_release.errors import LockHeldError
from whff_release.models.run import RunLock
from whff_release.utils.logging import LogSink


def pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class PipelineLock:
    def __init__(self, path: Path, run_id: str, sink: LogSink, command: str = "whff-release"):
        self.path = Path(path)
        self.sink = sink
        self.record = RunLock(pid=os.getpid(), run_id=run_id, command=command)
        self.held = False

    def _create(self) -> bool:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(self.record.model_dump_json())
        return True

    def read_holder(self) -> RunLock | None:
        try:
            return RunLock.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None

    def acquire(self) -> None:
        if self._create():
            self.held = True
            return

        holder = self.read_holder()
        if holder is not None and pid_alive(holder.pid):
            raise LockHeldError(str(self.path), holder.pid)

        self.sink.warning(
            "Removing stale lock %s (pid %s)",
            self.path.name, holder.pid if holder else "unknown",
        )
        self.path.unlink(missing_ok=True)
        if not self._create():
            holder = self.read_holder()
            raise LockHeldError(str(self.path), holder.pid if holder else -1)
        self.held = True

    def release(self) -> None:
        if not self.held:
            return
        holder = self.read_holder()
        if holder is None or holder.run_id == self.record.run_id:
            self.path.unlink(missing_ok=True)
        self.held = False

    def __enter__(self) -> "PipelineLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
