"""Storage capability used by the repository.

All repository I/O goes through a ``Storage`` object addressed by POSIX
paths relative to the workspace root. ``LocalStorage`` maps those paths onto
a real directory; ``MemoryStorage`` keeps everything in dictionaries so the
engine can be exercised without touching the filesystem.

Missing files raise ``FileNotFoundError`` from every implementation.
"""

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Protocol, Set, Union

logger = logging.getLogger(__name__)

StoragePath = Union[str, PurePosixPath]


class Storage(Protocol):
    """
    Protocol for repository storage implementations.

    Paths are relative to the storage root and use forward slashes.
    """

    root: Path

    def read_bytes(self, path: StoragePath) -> bytes:
        """Read a whole file. Raises FileNotFoundError if absent."""
        ...

    def write_bytes(self, path: StoragePath, data: bytes) -> None:
        """Write a whole file, creating parent directories."""
        ...

    def replace_atomic(self, path: StoragePath, data: bytes) -> None:
        """Replace a file so readers see either the old or the new content."""
        ...

    def exists(self, path: StoragePath) -> bool:
        ...

    def is_dir(self, path: StoragePath) -> bool:
        ...

    def make_dirs(self, path: StoragePath) -> None:
        """Create a directory and its parents; existing directories are fine."""
        ...

    def list_dirs(self, path: StoragePath) -> List[str]:
        """Names of the immediate subdirectories of ``path``, sorted."""
        ...

    def list_files(self, path: StoragePath) -> List[str]:
        """All files below ``path`` as sorted paths relative to ``path``."""
        ...


class LocalStorage:
    """
    Filesystem storage rooted at a workspace directory.

    Attributes:
        root: Absolute workspace directory
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()

    def _abs(self, path: StoragePath) -> Path:
        return self.root / PurePosixPath(path)

    def read_bytes(self, path: StoragePath) -> bytes:
        with open(self._abs(path), "rb") as f:
            return f.read()

    def write_bytes(self, path: StoragePath, data: bytes) -> None:
        target = self._abs(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as f:
            f.write(data)

    def replace_atomic(self, path: StoragePath, data: bytes) -> None:
        """Write to a temp file in the same directory, fsync, then rename."""
        target = self._abs(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=target.parent,
            prefix=f".tmp_{target.name}_",
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            os.replace(tmp_path, target)

        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

        logger.debug("Atomically replaced %s", target)

    def exists(self, path: StoragePath) -> bool:
        return self._abs(path).exists()

    def is_dir(self, path: StoragePath) -> bool:
        return self._abs(path).is_dir()

    def make_dirs(self, path: StoragePath) -> None:
        self._abs(path).mkdir(parents=True, exist_ok=True)

    def list_dirs(self, path: StoragePath) -> List[str]:
        base = self._abs(path)
        if not base.is_dir():
            return []
        return sorted(item.name for item in base.iterdir() if item.is_dir())

    def list_files(self, path: StoragePath) -> List[str]:
        base = self._abs(path)
        if not base.is_dir():
            return []
        return sorted(
            item.relative_to(base).as_posix()
            for item in base.rglob("*")
            if item.is_file()
        )

    def __repr__(self) -> str:
        return f"LocalStorage({str(self.root)!r})"


class MemoryStorage:
    """
    In-memory storage for unit tests.

    Files live in a dict keyed by normalized POSIX path; directories are
    tracked explicitly so empty directories behave like on disk.
    """

    def __init__(self, root: Optional[Path] = None, files: Optional[Dict[str, bytes]] = None) -> None:
        self.root = Path(root) if root is not None else Path("/workspace")
        self.files: Dict[str, bytes] = {}
        self.dirs: Set[str] = {""}
        for path, data in (files or {}).items():
            self.write_bytes(path, data)

    @staticmethod
    def _key(path: StoragePath) -> str:
        key = PurePosixPath(path).as_posix()
        return "" if key == "." else key

    def _add_parents(self, key: str) -> None:
        for parent in PurePosixPath(key).parents:
            self.dirs.add(self._key(parent))

    def read_bytes(self, path: StoragePath) -> bytes:
        key = self._key(path)
        if key in self.dirs:
            raise IsADirectoryError(key)
        try:
            return self.files[key]
        except KeyError:
            raise FileNotFoundError(key) from None

    def write_bytes(self, path: StoragePath, data: bytes) -> None:
        key = self._key(path)
        if key in self.dirs:
            raise IsADirectoryError(key)
        self._add_parents(key)
        self.files[key] = bytes(data)

    def replace_atomic(self, path: StoragePath, data: bytes) -> None:
        self.write_bytes(path, data)

    def exists(self, path: StoragePath) -> bool:
        key = self._key(path)
        return key in self.files or key in self.dirs

    def is_dir(self, path: StoragePath) -> bool:
        return self._key(path) in self.dirs

    def make_dirs(self, path: StoragePath) -> None:
        key = self._key(path)
        if key in self.files:
            raise FileExistsError(key)
        self._add_parents(key)
        self.dirs.add(key)

    def remove(self, path: StoragePath) -> None:
        """Delete a file (test helper for simulating vanished paths)."""
        key = self._key(path)
        try:
            del self.files[key]
        except KeyError:
            raise FileNotFoundError(key) from None

    def _children(self, key: str) -> List[str]:
        return [
            item
            for item in list(self.dirs) + list(self.files)
            if item and self._key(PurePosixPath(item).parent) == key
        ]

    def list_dirs(self, path: StoragePath) -> List[str]:
        key = self._key(path)
        if key not in self.dirs:
            return []
        return sorted(PurePosixPath(child).name for child in self._children(key) if child in self.dirs)

    def list_files(self, path: StoragePath) -> List[str]:
        key = self._key(path)
        if key not in self.dirs:
            return []
        prefix = f"{key}/" if key else ""
        return sorted(item[len(prefix):] for item in self.files if item.startswith(prefix))

    def __repr__(self) -> str:
        return f"MemoryStorage({len(self.files)} files)"
