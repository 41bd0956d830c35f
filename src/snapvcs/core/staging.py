"""Tracking: registering workspace paths in the staging manifest.

Tracking records the live fingerprint of each file immediately. A file
that has never been captured by a snapshot is also marked pending in the
repository state so the next snapshot copies it even though its recorded
fingerprint already matches.
"""

import errno
import fnmatch
import logging
import posixpath
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Union

from snapvcs.constants import IGNORE_FILE
from snapvcs.core.manifest import is_repo_path
from snapvcs.core.repository import Repository
from snapvcs.core.results import PathFailure, TrackResult
from snapvcs.errors import UntrackablePath
from snapvcs.storage.fingerprint import fingerprint

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class StagingManager:
    """Adds paths to a repository's manifest.

    Attributes:
        repo: Repository being tracked into
    """

    def __init__(self, repo: Repository):
        self.repo = repo
        self.storage = repo.storage

    def track(self, paths: Iterable[PathLike], force: bool = False) -> TrackResult:
        """Track files, or every file below directories, in ``paths``.

        Args:
            paths: Paths relative to the workspace root, or absolute paths
                inside it
            force: Ignore the rules in the workspace ignore file

        Returns:
            TrackResult describing each path; per-path failures are collected
            rather than raised

        Raises:
            UninitializedRepository: If the repository has no manifest
            CorruptManifest: If the manifest cannot be parsed
        """
        manifest = self.repo.load_manifest()
        state = self.repo.load_state()
        patterns = [] if force else self.load_ignore_patterns()
        result = TrackResult()

        for path in paths:
            try:
                rel_path = self.resolve(path)
            except UntrackablePath as e:
                result.errors.append(PathFailure(str(path), e))
                continue

            if rel_path == "" or self.storage.is_dir(rel_path):
                candidates = self._expand_directory(rel_path)
            elif self.storage.exists(rel_path):
                candidates = [rel_path]
            else:
                result.errors.append(PathFailure(
                    rel_path,
                    FileNotFoundError(errno.ENOENT, "file not found", rel_path),
                ))
                continue

            for candidate in candidates:
                if self.should_ignore(candidate, patterns):
                    result.ignored.append(candidate)
                    continue

                try:
                    live = fingerprint(self.storage.read_bytes(candidate))
                    was_tracked = candidate in manifest
                    modified = manifest.track(candidate, live)
                except (OSError, UntrackablePath) as e:
                    result.errors.append(PathFailure(candidate, e))
                    continue

                if not was_tracked:
                    state.mark_pending(candidate)
                    result.added.append(candidate)
                elif modified:
                    state.mark_pending(candidate)
                    result.updated.append(candidate)
                else:
                    result.unchanged.append(candidate)

        if result.added or result.updated:
            # Pending marks go first; orphaned marks are dropped on the next snapshot
            self.repo.save_state(state)
            self.repo.save_manifest(manifest)

        logger.info(
            "Tracked %d new, %d updated, %d unchanged, %d ignored, %d failed",
            len(result.added), len(result.updated), len(result.unchanged),
            len(result.ignored), len(result.errors),
        )
        return result

    def tracked_paths(self) -> List[str]:
        """All paths currently in the manifest, in tracking order."""
        return self.repo.load_manifest().paths()

    def resolve(self, path: PathLike) -> str:
        """Normalize ``path`` to a workspace-relative POSIX path.

        The workspace root itself resolves to ``""``.

        Raises:
            UntrackablePath: If the path leaves the workspace or points into
                the repository directory
        """
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.relative_to(self.repo.root)
            except ValueError:
                raise UntrackablePath(
                    str(path), f"outside workspace root {self.repo.root}"
                ) from None

        rel_path = posixpath.normpath(candidate.as_posix())
        if rel_path == ".":
            return ""
        if rel_path == ".." or rel_path.startswith("../"):
            raise UntrackablePath(str(path), f"outside workspace root {self.repo.root}")
        if is_repo_path(rel_path):
            raise UntrackablePath(str(path), "inside the repository directory")
        return rel_path

    def _expand_directory(self, rel_dir: str) -> List[str]:
        """Every file below ``rel_dir``, skipping the repository directory."""
        files = []
        for item in self.storage.list_files(rel_dir):
            rel_path = posixpath.join(rel_dir, item) if rel_dir else item
            if not is_repo_path(rel_path):
                files.append(rel_path)
        return files

    def load_ignore_patterns(self) -> List[str]:
        """Load patterns from the workspace ignore file, if it exists."""
        try:
            content = self.storage.read_bytes(IGNORE_FILE).decode("utf-8")
        except FileNotFoundError:
            return []

        patterns = []
        for line in content.splitlines():
            line = line.strip()
            # Skip empty lines and comments
            if line and not line.startswith("#"):
                patterns.append(line)
        return patterns

    @staticmethod
    def should_ignore(rel_path: str, patterns: List[str]) -> bool:
        """Check if a workspace-relative path matches any ignore pattern."""
        parts = PurePosixPath(rel_path).parts

        for pattern in patterns:
            if pattern.endswith("/"):
                # Directory pattern: match any directory component
                dir_pattern = pattern.rstrip("/")
                if any(fnmatch.fnmatch(part, dir_pattern) for part in parts[:-1]):
                    return True
                if rel_path.startswith(dir_pattern + "/"):
                    return True
            else:
                if fnmatch.fnmatch(rel_path, pattern):
                    return True
                # Also match on the file name alone
                if fnmatch.fnmatch(parts[-1], pattern):
                    return True

        return False
