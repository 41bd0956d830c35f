"""Repository handle: on-disk layout, manifest and commit bookkeeping.

Layout below the workspace root::

    .snapvcs/
        manifest        tracked path -> fingerprint
        state.json      commit counter and paths awaiting first capture
        history.db      snapshot history index (filesystem repositories only)
        commits/
            0/ 1/ ...   copies of the files changed by each snapshot

Every operation receives the ``Repository`` explicitly; it owns the storage
capability all reads and writes go through.
"""

import json
import logging
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional

from snapvcs.constants import (
    COMMITS_DIR,
    MANIFEST_FILE,
    SNAPVCS_DIR,
    STATE_FILE,
    STATE_VERSION,
)
from snapvcs.core.manifest import StagingManifest
from snapvcs.errors import AlreadyInitialized, CorruptState, UninitializedRepository
from snapvcs.storage.backend import LocalStorage, Storage
from snapvcs.storage.history_db import HistoryDB

logger = logging.getLogger(__name__)

REPO_DIR = PurePosixPath(SNAPVCS_DIR)
MANIFEST_PATH = REPO_DIR / MANIFEST_FILE
STATE_PATH = REPO_DIR / STATE_FILE
COMMITS_PATH = REPO_DIR / COMMITS_DIR


class RepositoryState:
    """Persisted counters that live beside the manifest.

    Attributes:
        next_commit: Index the next non-empty snapshot should use, or None
            when no state file exists (index derived from commits/)
        pending: Tracked paths that have never been copied into a commit
    """

    def __init__(self, next_commit: Optional[int] = None, pending: Optional[Iterable[str]] = None):
        self.next_commit = next_commit
        self.pending: List[str] = list(dict.fromkeys(pending or []))

    @classmethod
    def from_bytes(cls, data: bytes) -> "RepositoryState":
        try:
            raw = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptState(str(e)) from e

        if not isinstance(raw, dict):
            raise CorruptState("expected a JSON object")
        if raw.get("version") != STATE_VERSION:
            raise CorruptState(f"unsupported version: {raw.get('version')}")

        next_commit = raw.get("next_commit")
        pending = raw.get("pending", [])
        if not isinstance(next_commit, int) or isinstance(next_commit, bool) or next_commit < 0:
            raise CorruptState(f"invalid next_commit: {next_commit!r}")
        if not isinstance(pending, list) or not all(isinstance(p, str) for p in pending):
            raise CorruptState("pending must be a list of paths")

        return cls(next_commit=next_commit, pending=pending)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": STATE_VERSION,
            "next_commit": self.next_commit or 0,
            "pending": self.pending,
        }

    def to_bytes(self) -> bytes:
        return (json.dumps(self.to_dict(), indent=2) + "\n").encode("utf-8")

    def mark_pending(self, path: str) -> None:
        if path not in self.pending:
            self.pending.append(path)

    def clear_pending(self, paths: Iterable[str]) -> None:
        done = set(paths)
        self.pending = [p for p in self.pending if p not in done]

    def __repr__(self) -> str:
        return f"RepositoryState(next_commit={self.next_commit}, pending={len(self.pending)})"


class Repository:
    """Handle on an initialized repository.

    Use :meth:`initialize` to create one and :meth:`open` to attach to an
    existing one.

    Attributes:
        storage: Storage capability rooted at the workspace
        root: Workspace root directory
    """

    def __init__(self, storage: Storage):
        self.storage = storage
        self.root = storage.root

    @classmethod
    def initialize(cls, root: Path, storage: Optional[Storage] = None) -> "Repository":
        """Create the repository layout under ``root``.

        Raises:
            AlreadyInitialized: If ``root`` already holds a repository directory
            OSError: If the layout cannot be written
        """
        storage = storage if storage is not None else LocalStorage(root)
        if storage.exists(REPO_DIR):
            raise AlreadyInitialized(str(storage.root))

        storage.make_dirs(COMMITS_PATH)
        storage.replace_atomic(MANIFEST_PATH, b"")
        storage.replace_atomic(STATE_PATH, RepositoryState(next_commit=0).to_bytes())

        repo = cls(storage)
        history = repo.history()
        if history is not None:
            with history:
                history.init_schema()

        logger.info("Initialized empty repository in %s", storage.root)
        return repo

    @classmethod
    def open(cls, root: Path, storage: Optional[Storage] = None) -> "Repository":
        """Attach to an existing repository.

        Raises:
            UninitializedRepository: If no manifest exists under ``root``
        """
        storage = storage if storage is not None else LocalStorage(root)
        if not storage.exists(MANIFEST_PATH):
            raise UninitializedRepository(str(storage.root))
        return cls(storage)

    # Manifest

    def load_manifest(self) -> StagingManifest:
        """Load the manifest in full.

        Raises:
            UninitializedRepository: If the manifest file is missing
            CorruptManifest: If it cannot be parsed
            OSError: If it exists but cannot be read
        """
        try:
            data = self.storage.read_bytes(MANIFEST_PATH)
        except FileNotFoundError:
            raise UninitializedRepository(str(self.root)) from None
        return StagingManifest.from_bytes(data)

    def save_manifest(self, manifest: StagingManifest) -> None:
        """Replace the manifest on disk with ``manifest``."""
        self.storage.replace_atomic(MANIFEST_PATH, manifest.to_bytes())
        logger.debug("Persisted manifest with %d entries", len(manifest))

    # State

    def load_state(self) -> RepositoryState:
        """Load the state file; a missing file yields an empty state."""
        try:
            data = self.storage.read_bytes(STATE_PATH)
        except FileNotFoundError:
            logger.debug("No state file, deriving commit index from %s", COMMITS_PATH)
            return RepositoryState()
        return RepositoryState.from_bytes(data)

    def save_state(self, state: RepositoryState) -> None:
        self.storage.replace_atomic(STATE_PATH, state.to_bytes())

    # Commits

    def list_commits(self) -> List[int]:
        """Indices of existing commit directories, ascending."""
        return sorted(
            int(name) for name in self.storage.list_dirs(COMMITS_PATH) if name.isdigit()
        )

    def next_commit_index(self, state: Optional[RepositoryState] = None) -> int:
        """Index for the next non-empty snapshot.

        Never returns an index whose directory already exists, even if the
        persisted counter lags behind an interrupted snapshot.
        """
        state = state if state is not None else self.load_state()
        commits = self.list_commits()
        after_existing = commits[-1] + 1 if commits else 0
        if state.next_commit is None:
            return after_existing
        return max(state.next_commit, after_existing)

    def commit_path(self, index: int) -> PurePosixPath:
        return COMMITS_PATH / str(index)

    def commit_files(self, index: int) -> List[str]:
        """Relative paths stored in commit ``index``."""
        return self.storage.list_files(self.commit_path(index))

    def read_commit_file(self, index: int, path: str) -> bytes:
        """Content of ``path`` as copied into commit ``index``.

        Raises:
            FileNotFoundError: If the commit does not hold ``path``
        """
        return self.storage.read_bytes(self.commit_path(index) / path)

    def latest_commit(self) -> Optional[int]:
        commits = self.list_commits()
        return commits[-1] if commits else None

    # History

    def history(self) -> Optional[HistoryDB]:
        """History index for filesystem repositories, None otherwise."""
        if isinstance(self.storage, LocalStorage):
            return HistoryDB(self.storage.root / REPO_DIR)
        return None

    def __repr__(self) -> str:
        return f"Repository({self.storage!r})"
