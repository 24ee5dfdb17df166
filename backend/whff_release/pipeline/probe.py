"""
WHFF-enD Release — Dev server readiness probe.

Polls the dev server URL until it answers or the timeout elapses.
A server that never answers only produces a warning; the operator
still has the verification window to decide.
"""

from __future__ import annotations

import asyncio

import httpx

from whff_release.utils.cancel import CancelToken
from whff_release.utils.logging import LogSink


async def probe_dev_server(
    url: str,
    timeout: float,
    sink: LogSink,
    cancel: CancelToken,
    poll_interval: float = 0.5,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Return True once ``url`` answers with a status below 500."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempts = 0
    async with httpx.AsyncClient(timeout=2.0, transport=transport) as client:
        while True:
            attempts += 1
            try:
                resp = await client.get(url)
                if resp.status_code < 500:
                    sink.success("Dev server answering at %s (HTTP %d)", url, resp.status_code)
                    return True
                sink.debug("  Probe %d: HTTP %d from %s", attempts, resp.status_code, url)
            except httpx.TransportError as exc:
                sink.debug("  Probe %d: %s", attempts, exc.__class__.__name__)
            if loop.time() >= deadline:
                return False
            await cancel.sleep(poll_interval)
