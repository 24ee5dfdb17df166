"""
WHFF-enD Release — Artifact location step.

Picks the newest build artifact in the output directory. Selection key is
(modification time in ns, file name): equal timestamps resolve to the
lexicographically greatest name, so repeated calls on the same directory
always return the same file.
"""

from __future__ import annotations

from pathlib import Path

from whff_release.errors import DistDirNotFoundError, NoArtifactError
from whff_release.models.run import BuildArtifact
from whff_release.utils.logging import LogSink


def find_latest_artifact(dist_dir: Path, prefix: str, suffix: str, sink: LogSink) -> BuildArtifact:
    """
    Return the most recently modified ``<prefix>*<suffix>`` file in dist_dir.
    Raises DistDirNotFoundError / NoArtifactError (both NotFoundError).
    """
    sink.muted("🔍 Looking for the newest artifact in %s/ ...", dist_dir.name)
    if not dist_dir.is_dir():
        raise DistDirNotFoundError(str(dist_dir))

    candidates = [
        entry for entry in dist_dir.iterdir()
        if entry.is_file() and entry.name.startswith(prefix) and entry.name.endswith(suffix)
    ]
    if not candidates:
        raise NoArtifactError(str(dist_dir), f"{prefix}*{suffix}")

    stats = {entry: entry.stat() for entry in candidates}
    latest = max(candidates, key=lambda e: (stats[e].st_mtime_ns, e.name))

    sink.success("Artifact found: %s", latest.name)
    return BuildArtifact(
        name=latest.name,
        path=str(latest),
        modified_ns=stats[latest].st_mtime_ns,
        size_bytes=stats[latest].st_size,
    )
