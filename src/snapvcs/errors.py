"""Exception types for snapvcs.

Every error carries enough context (path, line) for the caller to act on it.
Plain I/O failures are not wrapped; they surface as the built-in OSError.
"""

from typing import Optional


class SnapVCSError(RuntimeError):
    """Base class for all snapvcs errors."""
    pass


# Repository Errors
class RepositoryError(SnapVCSError):
    """Base class for repository lifecycle errors."""
    pass


class UninitializedRepository(RepositoryError):
    """Operation attempted on a directory that holds no repository."""

    def __init__(self, root: str):
        self.root = root
        super().__init__(f"Not a snapvcs repository (no repository found in {root})")


class AlreadyInitialized(RepositoryError):
    """Repository already exists at the requested location."""

    def __init__(self, root: str):
        self.root = root
        super().__init__(f"snapvcs repository already exists in {root}")


# Manifest Errors
class ManifestError(SnapVCSError):
    """Base class for staging manifest errors."""
    pass


class CorruptManifest(ManifestError):
    """Manifest file could not be parsed."""

    def __init__(self, reason: str, line_number: Optional[int] = None, line: Optional[str] = None):
        self.reason = reason
        self.line_number = line_number
        self.line = line
        location = f" (line {line_number}: {line!r})" if line_number is not None else ""
        super().__init__(f"Corrupted manifest: {reason}{location}")


# Staging Errors
class StagingError(SnapVCSError):
    """Base class for errors raised while tracking paths."""
    pass


class UntrackablePath(StagingError):
    """Path cannot be recorded in the manifest."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


# Snapshot Errors
class SnapshotError(SnapVCSError):
    """Base class for snapshot errors."""
    pass


class MissingTrackedFile(SnapshotError):
    """A tracked path no longer exists in the workspace."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path}: tracked file not found")


# History Errors
class HistoryError(SnapVCSError):
    """Snapshot history index could not be read or written.

    Attributes:
        result: CommitResult of the snapshot being recorded, set when the
            failure happened after its commit was written
    """

    result = None


class CorruptState(RepositoryError):
    """Repository state file could not be parsed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Corrupted repository state: {reason}")
