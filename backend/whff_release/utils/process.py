"""
WHFF-enD Release — External command runner.

Every git / yarn invocation goes through CommandRunner.run(), which blocks
the pipeline until the command exits and turns a non-zero exit into a
CommandError. Output is captured and re-emitted through the log sink.
"""

from __future__ import annotations

import asyncio
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from whff_release.errors import CommandError
from whff_release.utils.cancel import CancelToken
from whff_release.utils.logging import LogSink


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs one command at a time in ``cwd``."""

    def __init__(
        self,
        cwd: Path,
        sink: LogSink,
        cancel: CancelToken | None = None,
        env: Mapping[str, str] | None = None,
    ):
        self.cwd = Path(cwd)
        self.sink = sink
        self.cancel = cancel or CancelToken()
        self.env = dict(env) if env is not None else None

    async def run(self, *args: str, check: bool = True, shielded: bool = False) -> CommandResult:
        """Run one command. ``shielded`` commands (cleanup) run even after cancellation."""
        if not shielded:
            self.cancel.raise_if_cancelled()
        self.sink.muted("$ %s", shlex.join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(self.cwd),
                env=self.env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CommandError(args, 127, str(exc)) from exc

        out, err = await proc.communicate()
        result = CommandResult(
            args=tuple(args),
            returncode=proc.returncode,
            stdout=out.decode("utf-8", errors="replace"),
            stderr=err.decode("utf-8", errors="replace"),
        )
        for line in (result.stdout + result.stderr).splitlines():
            if line.strip():
                self.sink.muted("  %s", line)

        if check and not result.ok:
            raise CommandError(args, result.returncode, result.stderr or result.stdout)
        return result
