"""Snapshot engine: change detection and commit materialization.

A snapshot visits every tracked path in manifest order, re-fingerprints the
live file and copies it into the next numbered commit directory when the
content differs from the manifest (or the path has never been captured).
The commit directory is created lazily, so a snapshot with no changes
creates nothing and does not consume an index. The manifest is persisted
exactly once per snapshot.

Write order: file copies, then manifest, then state, then history index.
A crash after the copies leaves a commit directory the manifest does not
reflect; the next snapshot detects the same changes again and, because
indices skip existing directories, writes them to a fresh commit. The
history index is written last: a failure there leaves a complete commit
that is simply absent from the log.
"""

import logging
import os
import socket
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

from snapvcs.constants import AUTHOR_ENV_VAR
from snapvcs.core.manifest import ManifestEntry, StagingManifest
from snapvcs.core.repository import Repository, RepositoryState
from snapvcs.core.results import CommitResult, PathFailure, PathStatus
from snapvcs.errors import HistoryError, MissingTrackedFile
from snapvcs.storage.fingerprint import fingerprint

logger = logging.getLogger(__name__)


def default_author() -> str:
    """Author identifier from the environment, else ``user@hostname``."""
    author = os.getenv(AUTHOR_ENV_VAR)
    if author:
        return author
    username = os.getenv("USER") or os.getenv("USERNAME") or "unknown"
    return f"{username}@{socket.gethostname()}"


class SnapshotEngine:
    """Detects changed tracked files and writes them to new commits.

    Attributes:
        repo: Repository the engine operates on
    """

    def __init__(self, repo: Repository):
        self.repo = repo
        self.storage = repo.storage

    def _classify(self, entry: ManifestEntry, content: bytes, pending: Set[str]) -> PathStatus:
        live = fingerprint(content)
        if entry.path in pending:
            state = PathStatus.NEW
        elif live != entry.fingerprint:
            state = PathStatus.MODIFIED
        else:
            state = PathStatus.UNCHANGED
        return PathStatus(entry.path, state, entry.fingerprint, live)

    def status(self) -> List[PathStatus]:
        """Report the change state of every tracked path without writing.

        Raises:
            UninitializedRepository: If the manifest does not exist
            OSError: If a tracked file exists but cannot be read
        """
        manifest = self.repo.load_manifest()
        pending = set(self.repo.load_state().pending)

        statuses = []
        for entry in manifest:
            try:
                content = self.storage.read_bytes(entry.path)
            except FileNotFoundError:
                statuses.append(PathStatus(entry.path, PathStatus.MISSING, entry.fingerprint))
                continue
            statuses.append(self._classify(entry, content, pending))
        return statuses

    def snapshot(
        self,
        message: str = "",
        author: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> CommitResult:
        """Capture every tracked file whose content changed.

        Args:
            message: Free-form description stored in the history index
            author: Author identifier (default: :func:`default_author`)
            timestamp: ISO 8601 timestamp (default: now, UTC)

        Returns:
            CommitResult; ``commit_index`` is None when nothing changed.
            Missing or unreadable tracked files are listed in ``errors``
            and do not stop the remaining paths from being processed.

        Raises:
            UninitializedRepository: If the manifest does not exist
            CorruptManifest: If the manifest cannot be parsed
            OSError: If a copy or the manifest write fails
            HistoryError: If the snapshot cannot be recorded in the history index.
                The commit, manifest and state are already written; the
                exception carries the CommitResult as ``result``.
        """
        state = self.repo.load_state()
        commit_index = self.repo.next_commit_index(state)
        manifest = self.repo.load_manifest()
        pending = set(state.pending) & set(manifest.paths())

        commit_path = self.repo.commit_path(commit_index)
        commit_created = False
        changed: List[str] = []
        unchanged: List[str] = []
        errors: List[PathFailure] = []
        copied: List[Tuple[str, str, int]] = []

        for entry in manifest:
            try:
                content = self.storage.read_bytes(entry.path)
            except FileNotFoundError:
                logger.warning("Tracked file missing: %s", entry.path)
                errors.append(PathFailure(entry.path, MissingTrackedFile(entry.path)))
                continue
            except OSError as e:
                logger.warning("Cannot read tracked file %s: %s", entry.path, e)
                errors.append(PathFailure(entry.path, e))
                continue

            status = self._classify(entry, content, pending)
            if not status.is_changed:
                unchanged.append(entry.path)
                continue
            live = status.live

            if not commit_created:
                self.storage.make_dirs(commit_path)
                commit_created = True
                logger.debug("Created commit directory %s", commit_path)

            self.storage.write_bytes(commit_path / entry.path, content)
            manifest.track(entry.path, live)
            changed.append(entry.path)
            copied.append((entry.path, live, len(content)))
            logger.debug("Captured %s (%s)", entry.path, live[:12])

        self.repo.save_manifest(manifest)
        self.repo.save_state(self._next_state(state, manifest, commit_index, changed))

        if not changed:
            logger.info("Nothing to commit")
            return CommitResult(None, changed, unchanged, errors)

        result = CommitResult(commit_index, changed, unchanged, errors)
        logger.info("Created commit %d with %d file(s)", commit_index, len(changed))
        try:
            self._record_history(
                commit_index,
                timestamp or datetime.now(timezone.utc).isoformat(),
                author or default_author(),
                message,
                copied,
            )
        except HistoryError as e:
            e.result = result
            raise
        return result

    def _next_state(
        self,
        state: RepositoryState,
        manifest: StagingManifest,
        commit_index: int,
        changed: List[str],
    ) -> RepositoryState:
        pending = [p for p in state.pending if p in manifest and p not in changed]
        next_commit = commit_index + 1 if changed else commit_index
        return RepositoryState(next_commit=next_commit, pending=pending)

    def _record_history(
        self,
        commit_index: int,
        timestamp: str,
        author: str,
        message: str,
        copied: List[Tuple[str, str, int]],
    ) -> None:
        history = self.repo.history()
        if history is None:
            return
        with history:
            history.init_schema()
            history.record_snapshot(commit_index, timestamp, author, message, copied)
