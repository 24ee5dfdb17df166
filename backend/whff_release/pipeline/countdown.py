"""
WHFF-enD Release — Manual verification window.

Blocks the pipeline for a fixed number of seconds, one tick per second,
so the operator can look at the running dev server and abort with Ctrl+C.
"""

from __future__ import annotations

from whff_release.utils.cancel import CancelToken
from whff_release.utils.logging import LogSink

CHECKLIST = (
    "The page opened correctly",
    "All components loaded",
    "There are no errors in the browser console",
    "Press Ctrl+C if you find problems",
)


async def verification_countdown(
    seconds: int,
    sink: LogSink,
    cancel: CancelToken,
    tick: float = 1.0,
) -> int:
    """Count down from ``seconds`` to 1. Returns the number of ticks emitted."""
    sink.notice("⏳ Starting countdown for manual verification...")
    sink.warning("Check that:")
    for item in CHECKLIST:
        sink.warning("  - %s", item)

    ticks = 0
    for remaining in range(seconds, 0, -1):
        await cancel.sleep(tick)
        ticks += 1
        sink.notice("⏳ %02d seconds remaining...", remaining)

    sink.success("Manual verification window finished. Starting final steps...")
    return ticks
