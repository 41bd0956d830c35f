"""Stable API for snapvcs operations.

Thin functions over the core classes for front ends that want the three
basic operations without wiring a repository handle themselves.

Example:
    >>> from snapvcs.api import initialize, track, snapshot
    >>> repo = initialize(".")
    >>> tracked = track(["a.txt"], root=".")
    >>> result = snapshot(root=".")
    >>> result.commit_index
    0
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from snapvcs.core import (
    CommitResult,
    PathStatus,
    Repository,
    SnapshotEngine,
    StagingManager,
    TrackResult,
)

PathLike = Union[str, Path]


def initialize(root: PathLike = ".") -> Repository:
    """Create a repository in ``root``.

    Raises:
        AlreadyInitialized: If ``root`` already holds a repository
    """
    return Repository.initialize(Path(root))


def track(paths: Iterable[PathLike], root: PathLike = ".", force: bool = False) -> TrackResult:
    """Track ``paths`` in the repository at ``root``.

    Raises:
        UninitializedRepository: If ``root`` holds no repository
    """
    repo = Repository.open(Path(root))
    return StagingManager(repo).track(paths, force=force)


def snapshot(
    root: PathLike = ".",
    message: str = "",
    author: Optional[str] = None,
) -> CommitResult:
    """Snapshot every changed tracked file in the repository at ``root``.

    Raises:
        UninitializedRepository: If ``root`` holds no repository
    """
    repo = Repository.open(Path(root))
    return SnapshotEngine(repo).snapshot(message=message, author=author)


def status(root: PathLike = ".") -> List[PathStatus]:
    """Change state of every tracked path in the repository at ``root``."""
    repo = Repository.open(Path(root))
    return SnapshotEngine(repo).status()


__all__ = ["initialize", "track", "snapshot", "status", "PathStatus"]
