"""
WHFF-enD Release — Run result and pipeline output contracts.

Every run returns a RunResult with full traceability:
state, timings, the artifact it published, and what git did.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field


class RunState(str, enum.Enum):
    RECEIVED = "RECEIVED"
    LOCKED = "LOCKED"
    BUILT = "BUILT"
    ARTIFACT_LOCATED = "ARTIFACT_LOCATED"
    SERVER_LAUNCHED = "SERVER_LAUNCHED"
    VERIFIED = "VERIFIED"
    PUBLISHED = "PUBLISHED"
    DEPLOYED = "DEPLOYED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class PublishState(str, enum.Enum):
    STAGED = "STAGED"
    COMMITTED = "COMMITTED"
    NOOP_SKIP = "NOOP_SKIP"
    SYNCED = "SYNCED"
    CONFLICT_DETECTED = "CONFLICT_DETECTED"
    FORCE_PUSH = "FORCE_PUSH"
    PUBLISHED = "PUBLISHED"


class BuildArtifact(BaseModel):
    name: str
    path: str
    modified_ns: int
    size_bytes: int = 0


class StepTiming(BaseModel):
    step: str
    duration_ms: int
    status: str = "ok"  # ok | skipped | failed
    detail: str = ""


class PublishOutcome(BaseModel):
    transitions: list[PublishState] = Field(default_factory=list)
    commit_message: str | None = None
    forced: bool = False

    @property
    def committed(self) -> bool:
        return PublishState.COMMITTED in self.transitions

    @property
    def state(self) -> PublishState | None:
        return self.transitions[-1] if self.transitions else None


class DeployOutcome(BaseModel):
    strategy: str
    target: str
    committed: bool = True
    restored_branch: str | None = None


class RunLock(BaseModel):
    """Contents of the pipeline lock file."""

    pid: int
    run_id: str
    command: str = "whff-release"
    started_at: datetime = Field(default_factory=datetime.now)


class RunResult(BaseModel):
    """Complete output contract for every release run."""

    run_id: str
    state: RunState
    artifact: BuildArtifact | None = None
    publish: PublishOutcome | None = None
    deploy: DeployOutcome | None = None
    dev_server_mode: str = "persistent"
    dev_server_pid: int | None = None
    timings: list[StepTiming] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
