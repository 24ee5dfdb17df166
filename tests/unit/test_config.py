"""Unit tests for environment-driven configuration."""

import os
from pathlib import Path

import pytest
from whff_release.core.config import DeployStrategy, DevServerMode, load_config
from whff_release.errors import ConfigError


class TestLoadConfig:
    def test_defaults(self, tmp_path):
        cfg = load_config(env={}, project_dir=tmp_path)
        assert cfg.project_dir == tmp_path.resolve()
        assert cfg.artifacts.dist_dir == tmp_path.resolve() / "dist"
        assert cfg.artifacts.prefix == "bundle"
        assert cfg.artifacts.suffix == ".js"
        assert cfg.wait_seconds == 30
        assert cfg.dev_server.mode is DevServerMode.PERSISTENT
        assert cfg.dev_server.command == ("yarn", "dev")
        assert cfg.dev_server.url == "http://localhost:3000"
        assert cfg.deploy_strategy is DeployStrategy.EXTERNAL_TOOL
        assert cfg.deploy_command == ("yarn", "gh-pages", "-d", "dist")
        assert cfg.git.remote == "origin"
        assert cfg.git.branch == "main"
        assert cfg.git.deploy_branch == "gh-pages"
        assert cfg.build_first is False
        assert cfg.log_file is None

    def test_commit_message(self, tmp_path):
        cfg = load_config(env={}, project_dir=tmp_path)
        assert cfg.commit_message("bundle.abc123.js") == "build: novo hash/bundle gerado - bundle.abc123.js"

    def test_overrides(self, tmp_path):
        cfg = load_config(env={
            "RELEASE_DIST_DIR": "build",
            "RELEASE_WAIT_SECONDS": "5",
            "RELEASE_DEV_SERVER_MODE": "smoke-test",
            "RELEASE_DEPLOY_STRATEGY": "manual-branch-swap",
            "RELEASE_DEPLOY_COMMAND": "npx gh-pages -d {dist}",
            "RELEASE_BUILD_FIRST": "yes",
            "RELEASE_LOG_FILE": "logs/release.log",
            "RELEASE_DEV_SERVER_URL": "",
        }, project_dir=tmp_path)
        assert cfg.artifacts.dist_dir.name == "build"
        assert cfg.wait_seconds == 5
        assert cfg.dev_server.mode is DevServerMode.SMOKE_TEST
        assert cfg.dev_server.url is None
        assert cfg.deploy_strategy is DeployStrategy.MANUAL_BRANCH_SWAP
        assert cfg.deploy_command == ("npx", "gh-pages", "-d", "build")
        assert cfg.build_first is True
        assert cfg.log_file == tmp_path.resolve() / "logs" / "release.log"

    def test_absolute_dist_dir_kept(self, tmp_path):
        other = tmp_path / "elsewhere"
        cfg = load_config(env={"RELEASE_DIST_DIR": str(other)}, project_dir=tmp_path)
        assert cfg.artifacts.dist_dir == Path(other)

    def test_lock_lives_in_git_dir(self, tmp_path):
        (tmp_path / ".git").mkdir()
        cfg = load_config(env={}, project_dir=tmp_path)
        assert cfg.lock_file == tmp_path.resolve() / ".git" / "whff-release.lock"

    def test_lock_outside_a_repository(self, tmp_path):
        cfg = load_config(env={}, project_dir=tmp_path)
        assert cfg.lock_file == tmp_path.resolve() / ".whff-release.lock"

    def test_lock_override(self, tmp_path):
        (tmp_path / ".git").mkdir()
        cfg = load_config(env={"RELEASE_LOCK_FILE": "run.lock"}, project_dir=tmp_path)
        assert cfg.lock_file == tmp_path.resolve() / "run.lock"

    def test_reports_every_problem(self, tmp_path):
        with pytest.raises(ConfigError) as info:
            load_config(env={
                "RELEASE_WAIT_SECONDS": "-1",
                "RELEASE_DEV_SERVER_MODE": "forever",
                "RELEASE_DEPLOY_STRATEGY": "ftp",
                "RELEASE_COMMIT_TEMPLATE": "build",
            }, project_dir=tmp_path)
        assert len(info.value.problems) == 4

    def test_non_numeric_wait(self, tmp_path):
        with pytest.raises(ConfigError, match="RELEASE_WAIT_SECONDS"):
            load_config(env={"RELEASE_WAIT_SECONDS": "thirty"}, project_dir=tmp_path)

    def test_same_branch_rejected(self, tmp_path):
        with pytest.raises(ConfigError, match="must differ"):
            load_config(env={"RELEASE_DEPLOY_BRANCH": "main"}, project_dir=tmp_path)

    def test_dotenv_loaded_when_env_not_given(self, tmp_path, monkeypatch):
        environ = {k: v for k, v in os.environ.items() if not k.startswith("RELEASE_")}
        monkeypatch.setattr(os, "environ", environ)
        (tmp_path / ".env").write_text("RELEASE_WAIT_SECONDS=7\n")
        cfg = load_config(project_dir=tmp_path)
        assert cfg.wait_seconds == 7
