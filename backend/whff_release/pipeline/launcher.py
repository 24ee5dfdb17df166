"""
WHFF-enD Release — Dev server launcher.

Starts the dev server without waiting for it to exit and returns a
DevServerHandle. The handle's ``mode`` states who ends the process:

  persistent  — outlives the pipeline; the CLI keeps it attached until
                the operator presses Ctrl+C.
  smoke-test  — the orchestrator terminates it after the verification
                window.

Server output is read line by line and re-emitted through the log sink,
reclassified by classify_output_line().
"""

from __future__ import annotations

import asyncio
import os
import re
import signal
from pathlib import Path
from typing import Sequence

from whff_release.core.config import DevServerMode
from whff_release.errors import LaunchError
from whff_release.utils.logging import LogSink

READY_PATTERN = re.compile(r"compiled successfully", re.IGNORECASE)
ERROR_PATTERN = re.compile(
    r"^\s*ERROR\b|Failed to compile|Module not found|Cannot find module|EADDRINUSE|Uncaught",
    re.IGNORECASE,
)
BENIGN_PATTERN = re.compile(
    r"DeprecationWarning|ExperimentalWarning|Browserslist: caniuse-lite is outdated"
    r"|\[webpack-dev-server\]|<i>|<w>|\(node:\d+\)",
)


def classify_output_line(line: str, stream: str) -> str:
    """
    Map one dev-server output line to a tone: ``ready``, ``error``,
    ``benign`` or ``plain``.
    """
    if READY_PATTERN.search(line):
        return "ready"
    if ERROR_PATTERN.search(line):
        return "error"
    if BENIGN_PATTERN.search(line):
        return "benign"
    return "error" if stream == "stderr" else "plain"


class DevServerHandle:
    """Owning handle for the spawned dev server process."""

    def __init__(self, process: asyncio.subprocess.Process, mode: DevServerMode, sink: LogSink):
        self.process = process
        self.mode = mode
        self.sink = sink
        self.ready = False
        self._pumps: list[asyncio.Task] = []

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def running(self) -> bool:
        return self.process.returncode is None

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    def _start_pumps(self) -> None:
        for stream, name in ((self.process.stdout, "stdout"), (self.process.stderr, "stderr")):
            if stream is not None:
                self._pumps.append(asyncio.create_task(self._pump(stream, name)))

    async def _pump(self, stream: asyncio.StreamReader, name: str) -> None:
        while True:
            raw = await stream.readline()
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            kind = classify_output_line(line, name)
            if kind == "ready":
                if not self.ready:
                    self.ready = True
                    self.sink.success("Dev server compiled. Open it in the browser.")
                self.sink.muted("%s", line)
            elif kind == "error":
                self.sink.error("✗ %s", line)
            elif kind == "benign":
                self.sink.debug("%s", line)
            else:
                self.sink.muted("%s", line)

    def _signal(self, sig: int) -> None:
        # the server runs in its own session on POSIX; signal the whole group
        try:
            if os.name == "posix":
                os.killpg(self.process.pid, sig)
            else:
                self.process.terminate()
        except ProcessLookupError:
            pass

    async def wait(self) -> int:
        code = await self.process.wait()
        await asyncio.gather(*self._pumps, return_exceptions=True)
        return code

    async def terminate(self, grace: float = 5.0) -> int | None:
        """Stop the server: SIGTERM, then SIGKILL after ``grace`` seconds."""
        if self.running:
            self.sink.muted("Stopping dev server (pid %d)", self.pid)
            self._signal(signal.SIGTERM)
            try:
                await asyncio.wait_for(self.process.wait(), timeout=grace)
            except asyncio.TimeoutError:
                self._signal(signal.SIGKILL if hasattr(signal, "SIGKILL") else signal.SIGTERM)
        return await self.wait()


async def launch_dev_server(
    command: Sequence[str],
    cwd: Path,
    sink: LogSink,
    mode: DevServerMode = DevServerMode.PERSISTENT,
) -> DevServerHandle:
    """Spawn ``command`` and return immediately. Raises LaunchError if it cannot start."""
    sink.muted("🚀 Starting dev server: %s", " ".join(command))
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=(os.name == "posix"),
        )
    except OSError as exc:
        raise LaunchError(command, str(exc)) from exc

    handle = DevServerHandle(process, mode, sink)
    handle._start_pumps()
    sink.info("  Dev server pid %d (%s)", handle.pid, mode.value)
    return handle
