"""
WHFF-enD Release — Release Orchestrator.

Runs the build-verify-publish pipeline as a state machine:

  RECEIVED → LOCKED → BUILT → ARTIFACT_LOCATED → SERVER_LAUNCHED
  → VERIFIED → PUBLISHED → DEPLOYED → COMPLETED

Stages run strictly in this order; each one assumes the side effects of
the previous one are on disk. Each step is timed, logged, and recorded
in the RunResult. Any failure ends the run in FAILED (or CANCELLED after
Ctrl+C), stops the dev server, and releases the lock.
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from whff_release.core.config import DeployStrategy, DevServerMode, ReleaseConfig
from whff_release.errors import LaunchError, PipelineCancelledError
from whff_release.models.run import (
    BuildArtifact,
    DeployOutcome,
    PublishOutcome,
    RunResult,
    RunState,
    StepTiming,
)
from whff_release.pipeline.countdown import verification_countdown
from whff_release.pipeline.deploy import deploy_branch_swap, deploy_with_tool
from whff_release.pipeline.launcher import DevServerHandle, launch_dev_server
from whff_release.pipeline.locate import find_latest_artifact
from whff_release.pipeline.lock import PipelineLock
from whff_release.pipeline.probe import probe_dev_server
from whff_release.pipeline.publish import publish_changes
from whff_release.utils.cancel import CancelToken
from whff_release.utils.logging import LogSink
from whff_release.utils.process import CommandRunner

StepResult = tuple[str, str]  # (status, detail)


class ReleaseOrchestrator:
    """
    State-machine orchestrator for one release run.

    The runner, launcher and probe are injectable so the pipeline can be
    driven without git, yarn or a live dev server.
    """

    def __init__(
        self,
        config: ReleaseConfig,
        sink: LogSink,
        runner: CommandRunner | None = None,
        cancel: CancelToken | None = None,
        launcher: Callable[..., Awaitable[DevServerHandle]] = launch_dev_server,
        probe: Callable[..., Awaitable[bool]] = probe_dev_server,
        tick: float = 1.0,
    ):
        self.run_id = uuid.uuid4().hex[:12]
        self.config = config
        self.sink = sink
        self.cancel = cancel or CancelToken()
        self.runner = runner or CommandRunner(config.project_dir, sink, self.cancel)
        self.launcher = launcher
        self.probe = probe
        self.tick = tick
        self.state = RunState.RECEIVED
        self.timings: list[StepTiming] = []
        self.warnings: list[str] = []
        self.artifact: BuildArtifact | None = None
        self.publish: PublishOutcome | None = None
        self.deploy: DeployOutcome | None = None
        self.dev_server: DevServerHandle | None = None

    def _record_step(self, name: str, start: float, status: str = "ok", detail: str = ""):
        ms = int((time.perf_counter() - start) * 1000)
        self.timings.append(StepTiming(step=name, duration_ms=ms, status=status, detail=detail))
        symbol = "✓" if status == "ok" else ("⊘" if status == "skipped" else "✗")
        self.sink.info("  %s %s — %dms %s", symbol, name, ms, detail)

    async def run(self) -> RunResult:
        """Execute the full pipeline. Returns a complete RunResult."""
        self.sink.notice("=" * 60)
        self.sink.notice("[%s] 🔄 Starting build and deploy run", self.run_id)
        self.sink.notice("=" * 60)
        run_start = time.perf_counter()

        steps: list[tuple[str, Callable[[], Awaitable[StepResult]]]] = [
            ("build", self._step_build),
            ("locate", self._step_locate),
            ("launch", self._step_launch),
            ("verify", self._step_verify),
            ("publish", self._step_publish),
            ("deploy", self._step_deploy),
        ]

        try:
            with PipelineLock(self.config.lock_file, self.run_id, self.sink):
                self.state = RunState.LOCKED
                for name, step in steps:
                    self.cancel.raise_if_cancelled()
                    t = time.perf_counter()
                    try:
                        status, detail = await step()
                    except Exception as exc:
                        self._record_step(name, t, "failed", str(exc))
                        raise
                    self._record_step(name, t, status, detail)
            self.state = RunState.COMPLETED
        except PipelineCancelledError:
            self.state = RunState.CANCELLED
            await self.stop_dev_server()
            raise
        except Exception:
            self.state = RunState.FAILED
            await self.stop_dev_server()
            raise

        total_ms = int((time.perf_counter() - run_start) * 1000)
        self.sink.notice("=" * 60)
        self.sink.success("[%s] Run complete for %s — %dms", self.run_id, self.artifact.name, total_ms)
        self.sink.notice("=" * 60)
        return self.result()

    def result(self) -> RunResult:
        return RunResult(
            run_id=self.run_id,
            state=self.state,
            artifact=self.artifact,
            publish=self.publish,
            deploy=self.deploy,
            dev_server_mode=self.config.dev_server.mode.value,
            dev_server_pid=self.dev_server.pid if self.dev_server and self.dev_server.running else None,
            timings=self.timings,
            warnings=self.warnings,
        )

    async def stop_dev_server(self) -> None:
        if self.dev_server is not None and self.dev_server.running:
            await self.dev_server.terminate()

    async def _step_build(self) -> StepResult:
        if not self.config.build_first:
            return "skipped", "RELEASE_BUILD_FIRST off"
        await self.runner.run(*self.config.build_command)
        self.state = RunState.BUILT
        return "ok", " ".join(self.config.build_command)

    async def _step_locate(self) -> StepResult:
        cfg = self.config.artifacts
        self.artifact = find_latest_artifact(cfg.dist_dir, cfg.prefix, cfg.suffix, self.sink)
        self.state = RunState.ARTIFACT_LOCATED
        return "ok", self.artifact.name

    async def _step_launch(self) -> StepResult:
        cfg = self.config.dev_server
        self.dev_server = await self.launcher(cfg.command, self.config.project_dir, self.sink, cfg.mode)
        self.state = RunState.SERVER_LAUNCHED
        return "ok", f"pid {self.dev_server.pid} ({cfg.mode.value})"

    async def _step_verify(self) -> StepResult:
        cfg = self.config.dev_server
        if cfg.url and cfg.probe_timeout > 0:
            if not await self.probe(cfg.url, cfg.probe_timeout, self.sink, self.cancel):
                msg = f"Dev server did not answer at {cfg.url} within {cfg.probe_timeout:g}s"
                self.sink.warning(msg)
                self.warnings.append(msg)

        await verification_countdown(self.config.wait_seconds, self.sink, self.cancel, tick=self.tick)

        server = self.dev_server
        if not server.running and server.returncode != 0:
            raise LaunchError(cfg.command, f"exited with code {server.returncode} during verification")

        if cfg.mode is DevServerMode.SMOKE_TEST:
            await server.terminate()
            detail = "smoke test passed, server stopped"
        else:
            detail = f"{self.config.wait_seconds}s window, server left running"
        self.state = RunState.VERIFIED
        return "ok", detail

    async def _step_publish(self) -> StepResult:
        git = self.config.git
        self.publish = await publish_changes(
            self.runner,
            self.config.commit_message(self.artifact.name),
            git.remote,
            git.branch,
            self.sink,
            exclude=(self.config.lock_file, self.config.log_file),
        )
        self.state = RunState.PUBLISHED
        return "ok", self.publish.state.value + (" (forced)" if self.publish.forced else "")

    async def _step_deploy(self) -> StepResult:
        if self.config.deploy_strategy is DeployStrategy.MANUAL_BRANCH_SWAP:
            git = self.config.git
            self.deploy = await deploy_branch_swap(
                self.runner,
                self.config.artifacts.dist_dir,
                git.remote,
                git.deploy_branch,
                self.config.commit_message(self.artifact.name),
                self.sink,
            )
        else:
            self.deploy = await deploy_with_tool(self.runner, self.config.deploy_command, self.sink)
        self.state = RunState.DEPLOYED
        return "ok", f"{self.deploy.strategy} → {self.deploy.target}"
