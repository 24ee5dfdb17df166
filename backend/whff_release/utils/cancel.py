"""
WHFF-enD Release — Cooperative cancellation token.

The CLI wires SIGINT to ``cancel()``; stages call ``raise_if_cancelled()``
before each external command and use ``sleep()`` for every timed wait so an
interrupt ends the run between steps instead of in the middle of one.
"""

from __future__ import annotations

import asyncio

from whff_release.errors import PipelineCancelledError


class CancelToken:
    def __init__(self):
        self._event = asyncio.Event()
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "interrupted by operator") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelledError(self.reason)

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds``; raise PipelineCancelledError as soon as cancelled."""
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise PipelineCancelledError(self.reason)
