"""
WHFF-enD Release — command line entry point.

  whff-release      locate bundle → dev server → 30s check → commit/push → deploy

No flags: behavior comes from RELEASE_* environment variables or the
project's .env file. Exit codes: 0 success, 1 failure, 130 interrupted.
"""

from __future__ import annotations

import asyncio
import json
import signal
import sys

from whff_release.core.config import DevServerMode, ReleaseConfig, load_config
from whff_release.errors import ConfigError, PipelineCancelledError, ReleaseError
from whff_release.models.run import RunResult
from whff_release.pipeline.orchestrator import ReleaseOrchestrator
from whff_release.utils.cancel import CancelToken
from whff_release.utils.logging import LogSink, configure_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def _banner(sink: LogSink, config: ReleaseConfig) -> None:
    sink.notice("")
    sink.notice("╔══════════════════════════════════════════════════╗")
    sink.notice("║        WHFF-enD  ·  build / verify / deploy      ║")
    sink.notice("╠══════════════════════════════════════════════════╣")
    sink.notice("║  Project   : %-36s║", config.project_dir.name)
    sink.notice("║  Artifact  : %-36s║", f"{config.artifacts.dist_dir.name}/{config.artifacts.prefix}*{config.artifacts.suffix}")
    sink.notice("║  Push to   : %-36s║", f"{config.git.remote}/{config.git.branch}")
    sink.notice("║  Deploy    : %-36s║", config.deploy_strategy.value)
    sink.notice("║  Dev server: %-36s║", config.dev_server.mode.value)
    sink.notice("╚══════════════════════════════════════════════════╝")
    sink.notice("")


def _summary(sink: LogSink, result: RunResult) -> None:
    sink.notice("═" * 39)
    sink.success("Process finished successfully!")
    sink.notice("🚀 Project built, deployed and updated (%s).", result.artifact.name)
    for warning in result.warnings:
        sink.warning(warning)
    sink.notice("═" * 39)


def _failure(sink: LogSink, exc: ReleaseError) -> None:
    error = exc.to_dict()
    sink.failure("error during the process: %s", error["message"])
    if "detail" in error:
        sink.error("  %s", error["detail"])
    if "suggestion" in error:
        sink.notice("  → %s", error["suggestion"])
    # one machine-readable line for the log file
    sink.muted("%s", json.dumps(error, ensure_ascii=False, default=str))


async def run_release(config: ReleaseConfig, sink: LogSink, cancel: CancelToken) -> int:
    orchestrator = ReleaseOrchestrator(config, sink, cancel=cancel)
    try:
        result = await orchestrator.run()
    except PipelineCancelledError as exc:
        sink.failure(exc.message)
        return EXIT_INTERRUPTED
    except ReleaseError as exc:
        _failure(sink, exc)
        return EXIT_FAILED

    _summary(sink, result)

    server = orchestrator.dev_server
    if config.dev_server.mode is DevServerMode.PERSISTENT and server is not None and server.running:
        sink.notice("LOCALHOST DEV ENVIRONMENT ACTIVE")
        sink.warning('Press "Ctrl+C" to stop it')
        waiter = asyncio.create_task(server.wait())
        interrupt = asyncio.create_task(cancel.wait())
        await asyncio.wait({waiter, interrupt}, return_when=asyncio.FIRST_COMPLETED)
        interrupt.cancel()
        if not waiter.done():
            await server.terminate()
            await waiter
        else:
            sink.muted("Dev server exited with code %s", server.returncode)
    return EXIT_OK


async def _main() -> int:
    try:
        config = load_config()
    except ConfigError as exc:
        print(f"\n  ERROR: {exc.message}\n  {exc.suggestion}\n", file=sys.stderr)
        return EXIT_FAILED

    sink = configure_logging(config.log_level, config.log_file, config.color)
    cancel = CancelToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.cancel)
        loop.add_signal_handler(signal.SIGTERM, cancel.cancel, "terminated")
    except NotImplementedError:
        pass  # Windows event loops: Ctrl+C falls back to KeyboardInterrupt

    _banner(sink, config)
    return await run_release(config, sink, cancel)


def main() -> None:
    try:
        code = asyncio.run(_main())
    except KeyboardInterrupt:
        code = EXIT_INTERRUPTED
    sys.exit(code)


if __name__ == "__main__":
    main()
