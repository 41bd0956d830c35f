"""Staging manifest: the persisted mapping from tracked path to fingerprint.

On-disk format, one entry per line::

    <relative/posix/path> <sha256-hex>

Blank lines are ignored. Paths are normalized, relative and stay inside the
workspace; anything else is rejected on read and on track. Paths containing
whitespace cannot be represented.
"""

import logging
import posixpath
from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional

from snapvcs.constants import SNAPVCS_DIR
from snapvcs.errors import CorruptManifest, UntrackablePath
from snapvcs.storage.fingerprint import is_fingerprint

logger = logging.getLogger(__name__)


def is_repo_path(path: str) -> bool:
    """True if a workspace-relative path points into the repository directory."""
    return PurePosixPath(path).parts[:1] == (SNAPVCS_DIR,)


def path_problem(path: str) -> Optional[str]:
    """Reason ``path`` cannot be a manifest entry, or None if it can."""
    if not path or any(c.isspace() for c in path):
        return "paths containing whitespace cannot be tracked"
    if PurePosixPath(path).is_absolute():
        return "absolute paths cannot be tracked"
    if ".." in PurePosixPath(path).parts:
        return "path leaves the workspace"
    if posixpath.normpath(path) != path:
        return "path is not normalized"
    if is_repo_path(path):
        return "inside the repository directory"
    return None


class ManifestEntry:
    """A tracked path and its last-recorded fingerprint.

    Attributes:
        path: Workspace-relative POSIX path (unique key)
        fingerprint: Hex digest of the content last recorded for the path
    """

    def __init__(self, path: str, fingerprint: str):
        self.path = path
        self.fingerprint = fingerprint

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ManifestEntry):
            return NotImplemented
        return self.path == other.path and self.fingerprint == other.fingerprint

    def __repr__(self) -> str:
        return f"ManifestEntry({self.path}: {self.fingerprint[:12]})"

    def to_line(self) -> str:
        return f"{self.path} {self.fingerprint}\n"


class StagingManifest:
    """In-memory view of the manifest, keyed by path.

    Entries keep the order they were first tracked in, which is also the
    order snapshots visit them.

    Example:
        >>> manifest = StagingManifest()
        >>> manifest.track("a.txt", "0" * 64)
        True
        >>> StagingManifest.parse(manifest.serialize()) == manifest
        True
    """

    def __init__(self, entries: Optional[List[ManifestEntry]] = None):
        self._entries: Dict[str, ManifestEntry] = {}
        for entry in entries or []:
            self._entries[entry.path] = entry

    @classmethod
    def parse(cls, text: str) -> "StagingManifest":
        """Parse manifest text.

        Raises:
            CorruptManifest: If a line is not exactly two tokens, the second is
                not a fingerprint, the path is absolute or escapes the
                workspace, or a path appears twice
        """
        manifest = cls()
        for line_number, raw in enumerate(text.splitlines(), start=1):
            if not raw.strip():
                continue

            tokens = raw.split()
            if len(tokens) != 2:
                raise CorruptManifest(
                    f"expected 2 fields, found {len(tokens)}", line_number, raw
                )

            path, digest = tokens
            if not is_fingerprint(digest):
                raise CorruptManifest("invalid fingerprint", line_number, raw)
            problem = path_problem(path)
            if problem is not None:
                raise CorruptManifest(f"invalid path {path!r}: {problem}", line_number, raw)
            if path in manifest:
                raise CorruptManifest(f"duplicate entry for {path}", line_number, raw)

            manifest._entries[path] = ManifestEntry(path, digest)

        return manifest

    @classmethod
    def from_bytes(cls, data: bytes) -> "StagingManifest":
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptManifest(f"not valid UTF-8: {e}") from e
        return cls.parse(text)

    def serialize(self) -> str:
        return "".join(entry.to_line() for entry in self._entries.values())

    def to_bytes(self) -> bytes:
        return self.serialize().encode("utf-8")

    def track(self, path: str, fingerprint: str) -> bool:
        """Insert or overwrite the entry for ``path``.

        Returns:
            True if the manifest changed, False if the same fingerprint was
            already recorded

        Raises:
            UntrackablePath: If the path cannot be written to the manifest
            ValueError: If ``fingerprint`` is malformed
        """
        problem = path_problem(path)
        if problem is not None:
            raise UntrackablePath(path, problem)
        if not is_fingerprint(fingerprint):
            raise ValueError(f"Invalid fingerprint: {fingerprint!r}")

        current = self._entries.get(path)
        if current is not None and current.fingerprint == fingerprint:
            return False

        if current is None:
            self._entries[path] = ManifestEntry(path, fingerprint)
        else:
            current.fingerprint = fingerprint
        logger.debug("Manifest entry %s -> %s", path, fingerprint[:12])
        return True

    def get(self, path: str) -> Optional[str]:
        """Recorded fingerprint for ``path``, or None if untracked."""
        entry = self._entries.get(path)
        return entry.fingerprint if entry is not None else None

    def paths(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StagingManifest):
            return NotImplemented
        return {e.path: e.fingerprint for e in self} == {e.path: e.fingerprint for e in other}

    def __repr__(self) -> str:
        return f"StagingManifest({len(self)} entries)"
