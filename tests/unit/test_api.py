"""Unit tests for the stable API functions."""

from pathlib import Path

import pytest

from snapvcs import api
from snapvcs.core.results import PathStatus
from snapvcs.errors import AlreadyInitialized, UninitializedRepository


def test_full_cycle(workspace: Path) -> None:
    api.initialize(workspace)
    (workspace / "a.txt").write_text("hello")

    tracked = api.track(["a.txt"], root=workspace)
    assert tracked.added == ["a.txt"]
    assert [s.state for s in api.status(root=workspace)] == [PathStatus.NEW]

    result = api.snapshot(root=workspace, message="first", author="dev@box")
    assert result.commit_index == 0
    assert (workspace / ".snapvcs" / "commits" / "0" / "a.txt").read_text() == "hello"

    assert api.snapshot(root=workspace).commit_index is None


def test_initialize_twice(workspace: Path) -> None:
    api.initialize(workspace)

    with pytest.raises(AlreadyInitialized):
        api.initialize(workspace)


def test_operations_require_repository(workspace: Path) -> None:
    with pytest.raises(UninitializedRepository):
        api.track(["a.txt"], root=workspace)

    with pytest.raises(UninitializedRepository):
        api.snapshot(root=workspace)
