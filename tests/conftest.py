"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from snapvcs.core import Repository, SnapshotEngine, StagingManager
from snapvcs.storage import MemoryStorage


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create an empty workspace directory."""
    workspace_root = tmp_path / "workspace"
    workspace_root.mkdir()
    return workspace_root


@pytest.fixture
def repo(workspace: Path) -> Repository:
    """Create a repository on the real filesystem."""
    return Repository.initialize(workspace)


@pytest.fixture
def staging(repo: Repository) -> StagingManager:
    return StagingManager(repo)


@pytest.fixture
def engine(repo: Repository) -> SnapshotEngine:
    return SnapshotEngine(repo)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """In-memory storage holding a few workspace files."""
    return MemoryStorage(files={
        "a.txt": b"hello",
        "b.txt": b"second file\n",
        "docs/readme.md": b"# Readme\n",
    })


@pytest.fixture
def memory_repo(memory_storage: MemoryStorage) -> Repository:
    """Create a repository that never touches the filesystem."""
    return Repository.initialize(memory_storage.root, storage=memory_storage)
