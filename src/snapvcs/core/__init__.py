"""Core engine layer for snapvcs.

This module provides the staging manifest, the repository handle, tracking,
and the snapshot engine.
"""

from snapvcs.core.manifest import ManifestEntry, StagingManifest
from snapvcs.core.repository import Repository, RepositoryState
from snapvcs.core.results import CommitResult, PathFailure, PathStatus, TrackResult
from snapvcs.core.snapshot import SnapshotEngine, default_author
from snapvcs.core.staging import StagingManager

__all__ = [
    "ManifestEntry",
    "StagingManifest",
    "Repository",
    "RepositoryState",
    "StagingManager",
    "SnapshotEngine",
    "default_author",
    "CommitResult",
    "PathFailure",
    "PathStatus",
    "TrackResult",
]
