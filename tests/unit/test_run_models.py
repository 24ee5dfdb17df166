"""Unit tests for Pydantic run models."""

from whff_release.models import (
    BuildArtifact, DeployOutcome, PublishOutcome, PublishState,
    RunLock, RunResult, RunState, StepTiming,
)


class TestPublishOutcome:
    def test_empty(self):
        o = PublishOutcome()
        assert o.state is None
        assert not o.committed
        assert not o.forced

    def test_committed_and_state(self):
        o = PublishOutcome(transitions=[PublishState.STAGED, PublishState.COMMITTED, PublishState.SYNCED])
        assert o.committed
        assert o.state is PublishState.SYNCED


class TestRunResult:
    def test_minimal(self):
        r = RunResult(run_id="abc123", state=RunState.FAILED)
        assert r.artifact is None
        assert r.timings == []
        assert r.warnings == []
        assert r.dev_server_mode == "persistent"

    def test_full(self):
        r = RunResult(
            run_id="xyz789",
            state=RunState.COMPLETED,
            artifact=BuildArtifact(name="bundle.abc123.js", path="dist/bundle.abc123.js", modified_ns=1),
            publish=PublishOutcome(transitions=[PublishState.STAGED, PublishState.NOOP_SKIP]),
            deploy=DeployOutcome(strategy="external-tool", target="yarn gh-pages -d dist"),
            timings=[StepTiming(step="locate", duration_ms=3)],
        )
        data = r.model_dump(mode="json")
        assert data["state"] == "COMPLETED"
        assert data["publish"]["transitions"] == ["STAGED", "NOOP_SKIP"]
        assert data["timings"][0]["status"] == "ok"

    def test_states(self):
        assert RunState.RECEIVED == "RECEIVED"
        assert RunState.CANCELLED == "CANCELLED"


class TestRunLock:
    def test_json_round_trip_keeps_owner(self):
        lock = RunLock(pid=42, run_id="r1")
        again = RunLock.model_validate_json(lock.model_dump_json())
        assert again.pid == 42
        assert again.command == "whff-release"
