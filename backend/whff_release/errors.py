"""
WHFF-enD Release — Structured error catalog.

Every error has a code, human message, and suggested fix.
Only ConflictError has an automatic recovery path; everything else
ends the run with a non-zero exit code.
"""

from __future__ import annotations

from typing import Any, Sequence


class ReleaseError(Exception):
    """Base error with structured code + suggestion."""

    def __init__(self, code: str, message: str, suggestion: str = "", detail: Any = None):
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "error_code": self.code,
            "message": self.message,
        }
        if self.suggestion:
            d["suggestion"] = self.suggestion
        if self.detail:
            d["detail"] = self.detail
        return d


class ConfigError(ReleaseError):
    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Invalid release configuration: {'; '.join(problems)}",
            suggestion="Check the RELEASE_* variables in your environment or .env file.",
            detail=problems,
        )


class NotFoundError(ReleaseError):
    pass


class DistDirNotFoundError(NotFoundError):
    def __init__(self, path: str):
        super().__init__(
            code="DIST_DIR_NOT_FOUND",
            message=f"Output directory not found: {path}",
            suggestion="Run the build (yarn build) first.",
        )


class NoArtifactError(NotFoundError):
    def __init__(self, path: str, pattern: str):
        super().__init__(
            code="ARTIFACT_NOT_FOUND",
            message=f"No artifact matching {pattern} in {path}",
            suggestion="Run the build (yarn build) and check RELEASE_ARTIFACT_PREFIX/SUFFIX.",
        )


class LaunchError(ReleaseError):
    def __init__(self, command: Sequence[str], reason: str):
        self.command = list(command)
        super().__init__(
            code="LAUNCH_FAILED",
            message=f"Could not start dev server ({' '.join(command)}): {reason}",
            suggestion="Check RELEASE_DEV_COMMAND and that the tool is on PATH.",
        )


class CommandError(ReleaseError):
    def __init__(self, args: Sequence[str], returncode: int, stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            code="COMMAND_FAILED",
            message=f"Command failed ({returncode}): {' '.join(args)}",
            suggestion="Inspect the command output above and fix the repository state by hand.",
            detail=stderr.strip()[:500] if stderr else None,
        )


class ConflictError(ReleaseError):
    def __init__(self, remote: str, branch: str, detail: str = ""):
        super().__init__(
            code="REBASE_CONFLICT",
            message=f"Conflict detected during git pull --rebase {remote} {branch}",
            suggestion="The rebase is aborted and local history is force-pushed.",
            detail=detail.strip()[:500] if detail else None,
        )


class LockHeldError(ReleaseError):
    def __init__(self, path: str, pid: int):
        self.pid = pid
        super().__init__(
            code="PIPELINE_LOCKED",
            message=f"Another release run (pid {pid}) holds {path}",
            suggestion="Wait for the other run to finish, or remove the lock file if that process is gone.",
        )


class PipelineCancelledError(ReleaseError):
    def __init__(self, reason: str = "interrupted by operator"):
        super().__init__(
            code="PIPELINE_CANCELLED",
            message=f"Release run cancelled: {reason}",
            suggestion="Re-run once the problem found during verification is fixed.",
        )
