"""
WHFF-enD Release — Configuration
Loads .env from the project directory, then reads all settings from
environment variables. The resulting ReleaseConfig is passed explicitly
to the orchestrator; nothing here is read as a module global.
"""

from __future__ import annotations

import enum
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from whff_release.errors import ConfigError


class DevServerMode(str, enum.Enum):
    PERSISTENT = "persistent"
    SMOKE_TEST = "smoke-test"


class DeployStrategy(str, enum.Enum):
    EXTERNAL_TOOL = "external-tool"
    MANUAL_BRANCH_SWAP = "manual-branch-swap"


@dataclass(frozen=True)
class ArtifactConfig:
    """Where the build output lives and what an artifact name looks like."""
    dist_dir: Path
    prefix: str
    suffix: str


@dataclass(frozen=True)
class GitConfig:
    remote: str
    branch: str
    deploy_branch: str
    commit_template: str


@dataclass(frozen=True)
class DevServerConfig:
    command: tuple[str, ...]
    mode: DevServerMode
    url: str | None
    probe_timeout: float


@dataclass(frozen=True)
class ReleaseConfig:
    """Top-level release configuration."""
    project_dir: Path
    artifacts: ArtifactConfig
    git: GitConfig
    dev_server: DevServerConfig
    wait_seconds: int
    build_first: bool
    build_command: tuple[str, ...]
    deploy_strategy: DeployStrategy
    deploy_command: tuple[str, ...]
    lock_file: Path
    log_file: Path | None
    log_level: str
    color: bool

    def commit_message(self, artifact_name: str) -> str:
        return self.git.commit_template.format(artifact=artifact_name)


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _under(project_dir: Path, value: str) -> Path:
    p = Path(value)
    return p if p.is_absolute() else project_dir / p


def _default_lock(project_dir: Path) -> Path:
    # inside .git the lock can never be staged or removed by a checkout
    git_dir = project_dir / ".git"
    if git_dir.is_dir():
        return git_dir / "whff-release.lock"
    return project_dir / ".whff-release.lock"


def load_config(env: Mapping[str, str] | None = None, project_dir: Path | None = None) -> ReleaseConfig:
    """
    Build a ReleaseConfig from ``env`` (defaults to os.environ after loading
    ``<project_dir>/.env``). Raises ConfigError listing every invalid value.
    """
    if env is None:
        root = Path(project_dir or os.getenv("RELEASE_PROJECT_DIR") or os.getcwd())
        load_dotenv(root / ".env")
        env = os.environ
    get = env.get

    root = Path(project_dir or get("RELEASE_PROJECT_DIR") or os.getcwd()).resolve()
    problems: list[str] = []

    wait_seconds = 30
    try:
        wait_seconds = int(get("RELEASE_WAIT_SECONDS", "30"))
        if wait_seconds < 0:
            problems.append("RELEASE_WAIT_SECONDS must be >= 0")
    except ValueError:
        problems.append(f"RELEASE_WAIT_SECONDS is not an integer: {get('RELEASE_WAIT_SECONDS')!r}")

    probe_timeout = 10.0
    try:
        probe_timeout = float(get("RELEASE_DEV_PROBE_TIMEOUT", "10"))
    except ValueError:
        problems.append(f"RELEASE_DEV_PROBE_TIMEOUT is not a number: {get('RELEASE_DEV_PROBE_TIMEOUT')!r}")

    mode = DevServerMode.PERSISTENT
    try:
        mode = DevServerMode(get("RELEASE_DEV_SERVER_MODE", "persistent"))
    except ValueError:
        problems.append(
            f"RELEASE_DEV_SERVER_MODE must be one of {[m.value for m in DevServerMode]}"
        )

    strategy = DeployStrategy.EXTERNAL_TOOL
    try:
        strategy = DeployStrategy(get("RELEASE_DEPLOY_STRATEGY", "external-tool"))
    except ValueError:
        problems.append(
            f"RELEASE_DEPLOY_STRATEGY must be one of {[s.value for s in DeployStrategy]}"
        )

    template = get("RELEASE_COMMIT_TEMPLATE", "build: novo hash/bundle gerado - {artifact}")
    if "{artifact}" not in template:
        problems.append("RELEASE_COMMIT_TEMPLATE must contain {artifact}")

    dist_value = get("RELEASE_DIST_DIR", "dist")
    dev_command = tuple(shlex.split(get("RELEASE_DEV_COMMAND", "yarn dev")))
    if not dev_command:
        problems.append("RELEASE_DEV_COMMAND is empty")
    deploy_command = tuple(
        shlex.split(get("RELEASE_DEPLOY_COMMAND", "yarn gh-pages -d {dist}").replace("{dist}", dist_value))
    )
    if strategy is DeployStrategy.EXTERNAL_TOOL and not deploy_command:
        problems.append("RELEASE_DEPLOY_COMMAND is empty")

    git = GitConfig(
        remote=get("RELEASE_REMOTE", "origin"),
        branch=get("RELEASE_BRANCH", "main"),
        deploy_branch=get("RELEASE_DEPLOY_BRANCH", "gh-pages"),
        commit_template=template,
    )
    if git.branch == git.deploy_branch:
        problems.append("RELEASE_BRANCH and RELEASE_DEPLOY_BRANCH must differ")

    if problems:
        raise ConfigError(problems)

    log_file = get("RELEASE_LOG_FILE", "")
    lock_value = get("RELEASE_LOCK_FILE", "")
    return ReleaseConfig(
        project_dir=root,
        artifacts=ArtifactConfig(
            dist_dir=_under(root, dist_value),
            prefix=get("RELEASE_ARTIFACT_PREFIX", "bundle"),
            suffix=get("RELEASE_ARTIFACT_SUFFIX", ".js"),
        ),
        git=git,
        dev_server=DevServerConfig(
            command=dev_command,
            mode=mode,
            url=get("RELEASE_DEV_SERVER_URL", "http://localhost:3000") or None,
            probe_timeout=probe_timeout,
        ),
        wait_seconds=wait_seconds,
        build_first=_flag(get("RELEASE_BUILD_FIRST", "false")),
        build_command=tuple(shlex.split(get("RELEASE_BUILD_COMMAND", "yarn build"))),
        deploy_strategy=strategy,
        deploy_command=deploy_command,
        lock_file=_under(root, lock_value) if lock_value else _default_lock(root),
        log_file=_under(root, log_file) if log_file else None,
        log_level=get("RELEASE_LOG_LEVEL", "INFO").upper(),
        color=_flag(get("RELEASE_COLOR", "true")),
    )
