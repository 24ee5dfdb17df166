"""
WHFF-enD Release — Static-site deploy step.

Two strategies replace the whole content of the deployment branch with
the output directory:

  external-tool       — delegate to a publish utility (yarn gh-pages -d dist).
  manual-branch-swap  — check out the deploy branch, remove every tracked
                        file, copy the output tree in, commit, force-push,
                        and check the original branch out again.

For the branch swap, the original branch is restored whether or not the
deploy succeeds.
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Sequence

from whff_release.core.config import DeployStrategy
from whff_release.errors import DistDirNotFoundError
from whff_release.models.run import DeployOutcome
from whff_release.pipeline.publish import has_staged_changes
from whff_release.utils.logging import LogSink, step_timer
from whff_release.utils.process import CommandRunner


async def deploy_with_tool(runner: CommandRunner, command: Sequence[str], sink: LogSink) -> DeployOutcome:
    sink.muted("🚀 Deploying with %s ...", " ".join(command))
    await runner.run(*command)
    sink.success("Deploy finished")
    return DeployOutcome(strategy=DeployStrategy.EXTERNAL_TOOL.value, target=" ".join(command))


async def current_branch(runner: CommandRunner) -> str:
    res = await runner.run("git", "rev-parse", "--abbrev-ref", "HEAD")
    return res.stdout.strip()


def _copy_tree(src: Path, dest: Path) -> list[str]:
    """Copy the children of src into dest; return the top-level names copied."""
    names: list[str] = []
    for entry in sorted(src.iterdir()):
        target = dest / entry.name
        if entry.is_dir():
            shutil.copytree(entry, target, dirs_exist_ok=True)
        else:
            shutil.copy2(entry, target)
        names.append(entry.name)
    return names


async def deploy_branch_swap(
    runner: CommandRunner,
    dist_dir: Path,
    remote: str,
    deploy_branch: str,
    message: str,
    sink: LogSink,
) -> DeployOutcome:
    if not dist_dir.is_dir():
        raise DistDirNotFoundError(str(dist_dir))

    original = await current_branch(runner)
    # the output dir may be tracked differently on the deploy branch
    staging = Path(tempfile.mkdtemp(prefix="whff_deploy_"))
    switched = False
    succeeded = False
    committed = False
    try:
        _copy_tree(dist_dir, staging)

        with step_timer(sink, f"Deploy {dist_dir.name}/ → {deploy_branch}"):
            await runner.run("git", "checkout", deploy_branch)
            switched = True
            await runner.run("git", "rm", "-r", "-q", "--ignore-unmatch", ".")
            names = _copy_tree(staging, runner.cwd)
            if names:
                await runner.run("git", "add", "-A", "--", *names)
            if await has_staged_changes(runner):
                await runner.run("git", "commit", "-m", message)
                committed = True
            else:
                sink.notice("ℹ %s already matches %s/", deploy_branch, dist_dir.name)
            await runner.run("git", "push", remote, deploy_branch, "--force")
        succeeded = True
    finally:
        if switched:
            if not succeeded:
                await runner.run("git", "reset", "--hard", "-q", check=False, shielded=True)
            await runner.run("git", "checkout", original, shielded=True)
            sink.muted("Back on branch %s", original)
        shutil.rmtree(staging, ignore_errors=True)

    sink.success("Deploy to %s finished", deploy_branch)
    return DeployOutcome(
        strategy=DeployStrategy.MANUAL_BRANCH_SWAP.value,
        target=deploy_branch,
        committed=committed,
        restored_branch=original,
    )
