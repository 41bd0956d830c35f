"""Unit tests for StagingManager."""

from pathlib import Path

import pytest

from snapvcs.core.repository import Repository
from snapvcs.core.staging import StagingManager
from snapvcs.errors import CorruptManifest, UninitializedRepository
from snapvcs.storage import MemoryStorage
from snapvcs.storage.fingerprint import fingerprint


class TestTrack:
    """Test tracking files on the filesystem."""

    def test_track_single_file(self, staging: StagingManager, repo: Repository, workspace: Path) -> None:
        (workspace / "test.txt").write_text("Hello, world!")

        result = staging.track(["test.txt"])

        assert result.added == ["test.txt"]
        assert result.ok
        assert repo.load_manifest().get("test.txt") == fingerprint(b"Hello, world!")

    def test_track_records_pending(self, staging: StagingManager, repo: Repository, workspace: Path) -> None:
        (workspace / "test.txt").write_text("content")

        staging.track(["test.txt"])

        assert repo.load_state().pending == ["test.txt"]

    def test_track_absolute_path(self, staging: StagingManager, workspace: Path) -> None:
        test_file = workspace / "abs.txt"
        test_file.write_text("content")

        result = staging.track([test_file])

        assert result.added == ["abs.txt"]

    def test_track_multiple_files(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "file1.txt").write_text("content1")
        (workspace / "file2.txt").write_text("content2")

        result = staging.track(["file1.txt", "file2.txt"])

        assert result.added == ["file1.txt", "file2.txt"]
        assert staging.tracked_paths() == ["file1.txt", "file2.txt"]

    def test_track_same_content_twice(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "test.txt").write_text("original")
        staging.track(["test.txt"])

        result = staging.track(["test.txt"])

        assert result.unchanged == ["test.txt"]
        assert result.added == []
        assert result.updated == []

    def test_track_modified_file(self, staging: StagingManager, repo: Repository, workspace: Path) -> None:
        test_file = workspace / "test.txt"
        test_file.write_text("original")
        staging.track(["test.txt"])

        test_file.write_text("modified")
        result = staging.track(["test.txt"])

        assert result.updated == ["test.txt"]
        assert repo.load_manifest().get("test.txt") == fingerprint(b"modified")

    def test_track_directory(self, staging: StagingManager, workspace: Path) -> None:
        subdir = workspace / "subdir"
        subdir.mkdir()
        (subdir / "file1.txt").write_text("content1")
        (subdir / "nested").mkdir()
        (subdir / "nested" / "file2.txt").write_text("content2")

        result = staging.track(["subdir"])

        assert sorted(result.added) == ["subdir/file1.txt", "subdir/nested/file2.txt"]

    def test_track_workspace_root_skips_repository(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "a.txt").write_text("a")

        result = staging.track(["."])

        assert result.added == ["a.txt"]
        assert not any(p.startswith(".snapvcs") for p in staging.tracked_paths())

    def test_track_nonexistent_file(self, staging: StagingManager) -> None:
        result = staging.track(["does_not_exist.txt"])

        assert result.added == []
        assert len(result.errors) == 1
        assert result.errors[0].kind == "FileNotFoundError"
        assert "does_not_exist.txt" in str(result.errors[0])

    def test_errors_do_not_block_other_paths(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "ok.txt").write_text("fine")

        result = staging.track(["missing.txt", "ok.txt"])

        assert result.added == ["ok.txt"]
        assert len(result.errors) == 1

    def test_track_outside_workspace(self, staging: StagingManager, tmp_path: Path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("outside")

        result = staging.track([outside, "../outside.txt"])

        assert [e.kind for e in result.errors] == ["UntrackablePath", "UntrackablePath"]
        assert staging.tracked_paths() == []

    def test_track_repository_file_rejected(self, staging: StagingManager) -> None:
        result = staging.track([".snapvcs/manifest"])

        assert result.errors[0].kind == "UntrackablePath"
        assert "repository directory" in str(result.errors[0])

    def test_track_whitespace_path_rejected(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / "my file.txt").write_text("spaces")

        result = staging.track(["my file.txt"])

        assert result.errors[0].kind == "UntrackablePath"
        assert staging.tracked_paths() == []

    def test_nothing_written_when_nothing_changes(self, staging: StagingManager, workspace: Path) -> None:
        manifest_path = workspace / ".snapvcs" / "manifest"
        before = manifest_path.stat().st_mtime_ns

        staging.track(["missing.txt"])

        assert manifest_path.stat().st_mtime_ns == before

    def test_uninitialized(self, workspace: Path) -> None:
        (workspace / "a.txt").write_text("a")
        repo = Repository(MemoryStorage())

        with pytest.raises(UninitializedRepository):
            StagingManager(repo).track(["a.txt"])

    def test_corrupt_manifest(self, staging: StagingManager, workspace: Path) -> None:
        (workspace / ".snapvcs" / "manifest").write_text("garbage\n")

        with pytest.raises(CorruptManifest):
            staging.track(["a.txt"])


class TestIgnoreRules:
    """Test ignore file handling."""

    @pytest.fixture
    def storage(self) -> MemoryStorage:
        return MemoryStorage(files={
            ".snapvcsignore": b"# comment\n*.tmp\nbuild/\n",
            "keep.txt": b"keep",
            "scratch.tmp": b"tmp",
            "src/cache.tmp": b"tmp",
            "build/out.bin": b"bin",
            "src/main.py": b"print()",
        })

    @pytest.fixture
    def manager(self, storage: MemoryStorage) -> StagingManager:
        return StagingManager(Repository.initialize(storage.root, storage=storage))

    def test_load_patterns(self, manager: StagingManager) -> None:
        assert manager.load_ignore_patterns() == ["*.tmp", "build/"]

    def test_ignored_on_directory_track(self, manager: StagingManager) -> None:
        result = manager.track(["."])

        assert sorted(result.added) == [".snapvcsignore", "keep.txt", "src/main.py"]
        assert sorted(result.ignored) == ["build/out.bin", "scratch.tmp", "src/cache.tmp"]

    def test_explicit_path_still_ignored(self, manager: StagingManager) -> None:
        result = manager.track(["scratch.tmp"])

        assert result.ignored == ["scratch.tmp"]
        assert result.added == []

    def test_force_overrides(self, manager: StagingManager) -> None:
        result = manager.track(["scratch.tmp", "build"], force=True)

        assert result.added == ["scratch.tmp", "build/out.bin"]

    def test_no_ignore_file(self) -> None:
        storage = MemoryStorage(files={"a.tmp": b"x"})
        manager = StagingManager(Repository.initialize(storage.root, storage=storage))

        assert manager.load_ignore_patterns() == []
        assert manager.track(["a.tmp"]).added == ["a.tmp"]

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("notes.tmp", True),
            ("deep/dir/notes.tmp", True),
            ("build/x", True),
            ("src/build/x", True),
            ("builder/x", False),
            ("notes.txt", False),
        ],
    )
    def test_should_ignore(self, path: str, expected: bool) -> None:
        assert StagingManager.should_ignore(path, ["*.tmp", "build/"]) is expected


class TestResolve:
    """Test path normalization against an in-memory workspace."""

    @pytest.fixture
    def manager(self, memory_repo: Repository) -> StagingManager:
        return StagingManager(memory_repo)

    def test_relative(self, manager: StagingManager) -> None:
        assert manager.resolve("docs/./readme.md") == "docs/readme.md"

    def test_absolute_inside_root(self, manager: StagingManager) -> None:
        assert manager.resolve(Path("/workspace/docs/readme.md")) == "docs/readme.md"

    def test_root(self, manager: StagingManager) -> None:
        assert manager.resolve(".") == ""

    def test_dotdot_inside_root(self, manager: StagingManager) -> None:
        assert manager.resolve("docs/../a.txt") == "a.txt"
