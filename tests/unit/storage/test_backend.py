"""Unit tests for the storage implementations."""

from pathlib import Path

import pytest

from snapvcs.storage.backend import LocalStorage, MemoryStorage


@pytest.fixture(params=["local", "memory"])
def storage(request, tmp_path: Path):
    """Each test runs against both storage implementations."""
    if request.param == "local":
        return LocalStorage(tmp_path)
    return MemoryStorage()


class TestReadWrite:
    """Test whole-file reads and writes."""

    def test_write_then_read(self, storage) -> None:
        storage.write_bytes("a.txt", b"hello")
        assert storage.read_bytes("a.txt") == b"hello"

    def test_write_creates_parents(self, storage) -> None:
        storage.write_bytes("deep/nested/file.bin", b"\x00\x01")
        assert storage.is_dir("deep/nested")
        assert storage.read_bytes("deep/nested/file.bin") == b"\x00\x01"

    def test_read_missing_raises(self, storage) -> None:
        with pytest.raises(FileNotFoundError):
            storage.read_bytes("missing.txt")

    def test_replace_atomic_overwrites(self, storage) -> None:
        storage.write_bytes("manifest", b"old content")
        storage.replace_atomic("manifest", b"new")
        assert storage.read_bytes("manifest") == b"new"

    def test_exists(self, storage) -> None:
        assert not storage.exists("a.txt")
        storage.write_bytes("a.txt", b"x")
        assert storage.exists("a.txt")
        assert not storage.is_dir("a.txt")


class TestDirectories:
    """Test directory listing."""

    def test_list_dirs_sorted(self, storage) -> None:
        for name in ["2", "0", "10"]:
            storage.make_dirs(f"commits/{name}")
        storage.write_bytes("commits/notes.txt", b"not a directory")

        assert storage.list_dirs("commits") == ["0", "10", "2"]

    def test_list_dirs_missing(self, storage) -> None:
        assert storage.list_dirs("nope") == []

    def test_make_dirs_idempotent(self, storage) -> None:
        storage.make_dirs("commits/0")
        storage.make_dirs("commits/0")
        assert storage.list_dirs("commits") == ["0"]

    def test_list_files_recursive(self, storage) -> None:
        storage.write_bytes("c/0/a.txt", b"a")
        storage.write_bytes("c/0/sub/b.txt", b"b")
        storage.write_bytes("c/1/a.txt", b"a2")

        assert storage.list_files("c/0") == ["a.txt", "sub/b.txt"]

    def test_list_files_root(self, storage) -> None:
        storage.write_bytes("x.txt", b"x")
        storage.write_bytes("d/y.txt", b"y")

        assert storage.list_files("") == ["d/y.txt", "x.txt"]


class TestLocalStorage:
    """Filesystem-specific behavior."""

    def test_root_is_resolved(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path / "." / "ws")
        assert storage.root == (tmp_path / "ws").resolve()

    def test_replace_atomic_leaves_no_temp_files(self, tmp_path: Path) -> None:
        storage = LocalStorage(tmp_path)
        storage.replace_atomic("dir/manifest", b"data")
        storage.replace_atomic("dir/manifest", b"data2")

        assert sorted(p.name for p in (tmp_path / "dir").iterdir()) == ["manifest"]

    def test_replace_atomic_failure_keeps_old_content(self, tmp_path: Path, monkeypatch) -> None:
        storage = LocalStorage(tmp_path)
        storage.replace_atomic("manifest", b"original")

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("snapvcs.storage.backend.os.replace", failing_replace)
        with pytest.raises(OSError, match="disk full"):
            storage.replace_atomic("manifest", b"new")

        assert (tmp_path / "manifest").read_bytes() == b"original"
        assert [p.name for p in tmp_path.iterdir()] == ["manifest"]


class TestMemoryStorage:
    """In-memory specific behavior."""

    def test_initial_files(self) -> None:
        storage = MemoryStorage(files={"a/b.txt": b"x"})
        assert storage.is_dir("a")
        assert storage.read_bytes("a/b.txt") == b"x"

    def test_read_directory_raises(self) -> None:
        storage = MemoryStorage(files={"a/b.txt": b"x"})
        with pytest.raises(IsADirectoryError):
            storage.read_bytes("a")

    def test_remove(self) -> None:
        storage = MemoryStorage(files={"a.txt": b"x"})
        storage.remove("a.txt")
        assert not storage.exists("a.txt")
        with pytest.raises(FileNotFoundError):
            storage.remove("a.txt")
