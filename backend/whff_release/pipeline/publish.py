"""
WHFF-enD Release — Version-control publish step.

Runs as a small state machine:

  STAGED → COMMITTED | NOOP_SKIP
         → SYNCED → PUBLISHED                           (pull --rebase ok)
         → CONFLICT_DETECTED → FORCE_PUSH → PUBLISHED   (rebase conflict)

A conflict is assumed to come from generated build files, so the rebase
is aborted and local history overwrites the remote. A pull that fails
without leaving a rebase in progress (network, auth) is not a conflict
and fails the run like any other command.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from whff_release.errors import CommandError, ConflictError
from whff_release.models.run import PublishOutcome, PublishState
from whff_release.utils.logging import LogSink
from whff_release.utils.process import CommandRunner


async def has_staged_changes(runner: CommandRunner) -> bool:
    """True when the index differs from HEAD; untracked files do not count."""
    res = await runner.run("git", "diff", "--cached", "--quiet", check=False)
    if res.returncode not in (0, 1):
        raise CommandError(res.args, res.returncode, res.stderr)
    return res.returncode == 1


def staging_pathspec(cwd: Path, exclude: Iterable[Path | None] = ()) -> list[str]:
    """``.`` plus an exclude magic pathspec for each path inside the work tree."""
    spec = ["."]
    root = Path(cwd).resolve()
    for path in exclude:
        if path is None:
            continue
        try:
            rel = Path(path).resolve().relative_to(root)
        except ValueError:
            continue
        if rel.parts[:1] == (".git",):
            continue
        spec.append(f":(exclude){rel.as_posix()}")
    return spec


async def rebase_in_progress(runner: CommandRunner) -> bool:
    for marker in ("rebase-merge", "rebase-apply"):
        res = await runner.run("git", "rev-parse", "--git-path", marker)
        path = Path(res.stdout.strip())
        if not path.is_absolute():
            path = runner.cwd / path
        if path.exists():
            return True
    return False


async def sync_with_remote(runner: CommandRunner, remote: str, branch: str) -> None:
    """git pull --rebase; raises ConflictError when the rebase stops half-way."""
    res = await runner.run("git", "pull", "--rebase", remote, branch, check=False)
    if res.ok:
        return
    if await rebase_in_progress(runner):
        raise ConflictError(remote, branch, res.stderr or res.stdout)
    raise CommandError(res.args, res.returncode, res.stderr or res.stdout)


async def publish_changes(
    runner: CommandRunner,
    commit_message: str,
    remote: str,
    branch: str,
    sink: LogSink,
    exclude: Iterable[Path | None] = (),
) -> PublishOutcome:
    """
    Stage, commit when something changed, reconcile with the remote and push.

    Paths in ``exclude`` (the run lock, the log file) are never staged.
    """
    outcome = PublishOutcome()

    sink.muted("📝 Checking changes to commit...")
    await runner.run("git", "add", "-A", "--", *staging_pathspec(runner.cwd, exclude))
    outcome.transitions.append(PublishState.STAGED)

    if await has_staged_changes(runner):
        sink.success("Changes found. Creating commit...")
        await runner.run("git", "commit", "-m", commit_message)
        outcome.commit_message = commit_message
        outcome.transitions.append(PublishState.COMMITTED)
    else:
        sink.notice("ℹ Nothing to commit")
        outcome.transitions.append(PublishState.NOOP_SKIP)

    sink.muted("🔄 Updating local branch...")
    try:
        await sync_with_remote(runner, remote, branch)
    except ConflictError as exc:
        outcome.transitions.append(PublishState.CONFLICT_DETECTED)
        sink.failure("git pull --rebase %s %s failed", remote, branch)
        sink.failure("cause: conflict detected during rebase")
        if exc.detail:
            sink.muted("  %s", exc.detail)
        await runner.run("git", "rebase", "--abort")
        await runner.run("git", "push", remote, branch, "--force")
        outcome.forced = True
        outcome.transitions.append(PublishState.FORCE_PUSH)
        sink.warning("Remote %s/%s overwritten with local history", remote, branch)
    else:
        outcome.transitions.append(PublishState.SYNCED)
        await runner.run("git", "push", remote, branch)
        sink.success("Local branch updated and pushed")

    outcome.transitions.append(PublishState.PUBLISHED)
    return outcome
