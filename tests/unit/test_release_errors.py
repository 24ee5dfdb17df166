"""Unit tests for the structured error catalog."""

import pytest
from whff_release.errors import (
    ReleaseError, ConfigError, NotFoundError, DistDirNotFoundError,
    NoArtifactError, LaunchError, CommandError, ConflictError,
    LockHeldError, PipelineCancelledError,
)


class TestErrorCatalog:
    def test_base_error(self):
        e = ReleaseError(code="TEST", message="test msg", suggestion="try this")
        d = e.to_dict()
        assert d["error_code"] == "TEST"
        assert d["message"] == "test msg"
        assert d["suggestion"] == "try this"
        assert "detail" not in d

    def test_config_error_lists_problems(self):
        e = ConfigError(["bad mode", "bad wait"])
        assert e.code == "CONFIG_INVALID"
        assert "bad mode; bad wait" in e.message
        assert e.to_dict()["detail"] == ["bad mode", "bad wait"]

    def test_dist_dir_not_found(self):
        e = DistDirNotFoundError("/proj/dist")
        assert isinstance(e, NotFoundError)
        assert e.code == "DIST_DIR_NOT_FOUND"
        assert "/proj/dist" in e.message

    def test_no_artifact(self):
        e = NoArtifactError("/proj/dist", "bundle*.js")
        assert isinstance(e, NotFoundError)
        assert e.code == "ARTIFACT_NOT_FOUND"
        assert "bundle*.js" in e.message

    def test_launch_error(self):
        e = LaunchError(["yarn", "dev"], "No such file or directory")
        assert e.code == "LAUNCH_FAILED"
        assert "yarn dev" in e.message

    def test_command_error_keeps_exit_code_and_stderr(self):
        e = CommandError(["git", "push", "origin", "main"], 128, "fatal: no remote\n")
        assert e.code == "COMMAND_FAILED"
        assert e.returncode == 128
        assert "(128)" in e.message
        assert e.detail == "fatal: no remote"

    def test_conflict_error(self):
        e = ConflictError("origin", "main", "CONFLICT (content)")
        assert e.code == "REBASE_CONFLICT"
        assert "origin main" in e.message

    def test_lock_held(self):
        e = LockHeldError(".whff-release.lock", 4242)
        assert e.pid == 4242
        assert "4242" in e.message

    def test_cancelled(self):
        e = PipelineCancelledError("terminated")
        assert e.code == "PIPELINE_CANCELLED"
        assert "terminated" in e.message

    @pytest.mark.parametrize("cls", [
        ConfigError, NotFoundError, LaunchError, CommandError,
        ConflictError, LockHeldError, PipelineCancelledError,
    ])
    def test_all_errors_are_release_errors(self, cls):
        assert issubclass(cls, ReleaseError)
        assert issubclass(cls, Exception)
