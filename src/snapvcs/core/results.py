"""Result objects returned by tracking, status and snapshot operations.

Operations that visit many paths do not stop at the first failing path;
they return one of these objects so every per-path outcome stays
inspectable.
"""

from typing import List, Optional


class PathFailure:
    """A single path that could not be processed.

    Attributes:
        path: Path as given by the caller or as stored in the manifest
        error: The exception raised for that path
    """

    def __init__(self, path: str, error: Exception):
        self.path = path
        self.error = error

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    def __str__(self) -> str:
        if isinstance(self.error, OSError) and self.error.strerror:
            return f"{self.path}: {self.error.strerror}"
        message = str(self.error)
        return message if message.startswith(self.path) else f"{self.path}: {message}"

    def __repr__(self) -> str:
        return f"PathFailure({self.path!r}, {self.kind})"


class TrackResult:
    """Outcome of tracking a batch of paths.

    Attributes:
        added: Paths newly entered into the manifest
        updated: Tracked paths whose recorded fingerprint was replaced
        unchanged: Tracked paths whose fingerprint was already current
        ignored: Paths skipped by ignore rules
        errors: Paths that could not be tracked
    """

    def __init__(self) -> None:
        self.added: List[str] = []
        self.updated: List[str] = []
        self.unchanged: List[str] = []
        self.ignored: List[str] = []
        self.errors: List[PathFailure] = []

    @property
    def ok(self) -> bool:
        return not self.errors


class PathStatus:
    """Change state of one tracked path.

    ``state`` is one of ``new`` (tracked, never captured), ``modified``,
    ``unchanged`` or ``missing``.
    """

    NEW = "new"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"
    MISSING = "missing"

    def __init__(
        self,
        path: str,
        state: str,
        recorded: str,
        live: Optional[str] = None,
    ):
        self.path = path
        self.state = state
        self.recorded = recorded
        self.live = live

    @property
    def is_changed(self) -> bool:
        return self.state in (self.NEW, self.MODIFIED)

    def __repr__(self) -> str:
        return f"PathStatus({self.path}: {self.state})"


class CommitResult:
    """Outcome of one snapshot.

    Attributes:
        commit_index: Index of the commit created, or None if nothing changed
        changed: Paths copied into the commit, in manifest order
        unchanged: Paths whose content matched the manifest
        errors: Paths that could not be read (e.g. MissingTrackedFile)
    """

    def __init__(
        self,
        commit_index: Optional[int],
        changed: List[str],
        unchanged: List[str],
        errors: List[PathFailure],
    ):
        self.commit_index = commit_index
        self.changed = changed
        self.unchanged = unchanged
        self.errors = errors

    @property
    def changed_paths(self) -> set:
        return set(self.changed)

    @property
    def created(self) -> bool:
        return self.commit_index is not None

    def raise_for_errors(self) -> None:
        """Re-raise the first per-path error, if any."""
        if self.errors:
            raise self.errors[0].error

    def __repr__(self) -> str:
        return (
            f"CommitResult(commit_index={self.commit_index}, "
            f"changed={len(self.changed)}, errors={len(self.errors)})"
        )
