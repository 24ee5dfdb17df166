"""WHFF-enD Release data models — typed contracts for the release pipeline."""

from whff_release.models.run import (
    RunState,
    PublishState,
    BuildArtifact,
    StepTiming,
    PublishOutcome,
    DeployOutcome,
    RunLock,
    RunResult,
)

__all__ = [
    "RunState",
    "PublishState",
    "BuildArtifact",
    "StepTiming",
    "PublishOutcome",
    "DeployOutcome",
    "RunLock",
    "RunResult",
]
