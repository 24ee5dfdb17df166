"""Shared test configuration and fixtures for the WHFF-enD release test suite."""

import logging
import sys
from pathlib import Path

import pytest

# Add backend to Python path so imports work
backend_dir = str(Path(__file__).parent.parent / "backend")
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from whff_release.core.config import load_config  # noqa: E402
from whff_release.errors import CommandError  # noqa: E402
from whff_release.utils.cancel import CancelToken  # noqa: E402
from whff_release.utils.logging import LogSink  # noqa: E402
from whff_release.utils.process import CommandResult  # noqa: E402


class FakeRunner:
    """
    Stand-in for CommandRunner. ``script`` maps an argv prefix to a
    CommandResult or to a callable(args) -> CommandResult; the longest
    matching prefix wins and anything unmatched succeeds with no output.
    """

    def __init__(self, cwd: Path):
        self.cwd = Path(cwd)
        self.cancel = CancelToken()
        self.calls: list[tuple[str, ...]] = []
        self.script: dict[tuple[str, ...], object] = {}

    def _lookup(self, args):
        best = None
        for prefix, value in self.script.items():
            if args[: len(prefix)] == prefix and (best is None or len(prefix) > len(best[0])):
                best = (prefix, value)
        return best[1] if best else None

    async def run(self, *args, check=True, shielded=False):
        if not shielded:
            self.cancel.raise_if_cancelled()
        self.calls.append(tuple(args))
        value = self._lookup(tuple(args))
        if callable(value):
            value = value(tuple(args))
        result = value or CommandResult(tuple(args), 0)
        if check and result.returncode != 0:
            raise CommandError(args, result.returncode, result.stderr)
        return result

    @property
    def git_calls(self):
        return [c for c in self.calls if c and c[0] == "git"]


@pytest.fixture
def sink():
    logger = logging.getLogger("whff_release.tests")
    logger.setLevel(logging.DEBUG)
    return LogSink(logger)


@pytest.fixture
def fake_runner(tmp_path):
    return FakeRunner(tmp_path)


@pytest.fixture
def project_dir(tmp_path):
    dist = tmp_path / "dist"
    dist.mkdir()
    return tmp_path


@pytest.fixture
def make_config(project_dir):
    """Build a ReleaseConfig from explicit env values over quiet test defaults."""

    def _make(**overrides):
        env = {
            "RELEASE_WAIT_SECONDS": "2",
            "RELEASE_DEV_SERVER_URL": "",
            "RELEASE_DEV_COMMAND": "yarn dev",
            "RELEASE_COLOR": "false",
        }
        env.update(overrides)
        return load_config(env=env, project_dir=project_dir)

    return _make
