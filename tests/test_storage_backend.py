"""Tests for StorageBackend.

This test suite covers all StorageBackend methods with:
- Local file system operations
- Error handling
- Edge cases
"""

import errno
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from remotecache.errors import (
    CacheDiskFullError,
    CachePermissionError,
    CacheWriteError,
)
from remotecache.storage import StorageBackend


@pytest.fixture
def storage():
    """Create a StorageBackend instance."""
    return StorageBackend()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# File System Operations
# ============================================================================


class TestFileSystem:
    """Test file system operations."""

    def test_exists_true(self, storage, temp_dir):
        """Test exists() returns True for existing file."""
        test_file = temp_dir / "test.cache"
        test_file.write_bytes(b"content")

        assert storage.exists(str(test_file)) is True

    def test_exists_false(self, storage, temp_dir):
        """Test exists() returns False for missing files and directories."""
        assert storage.exists(str(temp_dir / "nonexistent.cache")) is False
        assert storage.exists(str(temp_dir)) is False

    def test_mkdir_creates_nested_directory(self, storage, temp_dir):
        """Test mkdir() creates parents and tolerates existing directories."""
        new_dir = temp_dir / "a" / "b"

        storage.mkdir(str(new_dir))
        storage.mkdir(str(new_dir))

        assert new_dir.is_dir()

    def test_mkdir_permission_error(self, storage, temp_dir):
        """Test mkdir() wraps permission errors."""
        with patch.object(Path, "mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(CachePermissionError):
                storage.mkdir(str(temp_dir / "locked"))

    def test_join_paths(self, storage):
        """Test join_paths() joins components."""
        assert storage.join_paths("data", "cache", "a.cache") == str(
            Path("data") / "cache" / "a.cache"
        )

    def test_list_filters_and_sorts(self, storage, temp_dir):
        """Test list() returns matching files in sorted order."""
        for name in ("b.cache", "a.cache", "c.txt", "a.cache.tmp"):
            (temp_dir / name).write_bytes(b"x")
        (temp_dir / "d.cache").mkdir()

        assert storage.list(str(temp_dir), "*.cache") == [
            str(temp_dir / "a.cache"),
            str(temp_dir / "b.cache"),
        ]

    def test_list_missing_directory(self, storage, temp_dir):
        """Test list() on a missing directory returns an empty list."""
        assert storage.list(str(temp_dir / "absent")) == []


# ============================================================================
# Blob I/O
# ============================================================================


class TestBlobIO:
    """Test reading, writing and deleting blobs."""

    def test_write_read(self, storage, temp_dir):
        """Test write() then read() returns the same bytes."""
        path = str(temp_dir / "a.cache")

        assert storage.write(path, b"\x00binary\xffcontent") is True
        assert storage.read(path) == b"\x00binary\xffcontent"

    def test_write_leaves_no_temp_file(self, storage, temp_dir):
        """Test that writes go through a temp file that is renamed away."""
        path = temp_dir / "a.cache"
        storage.write(str(path), b"content")

        assert path.exists()
        assert not (temp_dir / "a.cache.tmp").exists()

    def test_write_overwrites(self, storage, temp_dir):
        """Test write() replaces existing content."""
        path = str(temp_dir / "a.cache")
        storage.write(path, b"first")
        storage.write(path, b"second")

        assert storage.read(path) == b"second"

    def test_size_and_last_modified(self, storage, temp_dir):
        """Test blob metadata."""
        path = temp_dir / "a.cache"
        path.write_bytes(b"12345")
        os.utime(path, (1_000_000, 1_000_000))

        assert storage.size(str(path)) == 5
        assert storage.last_modified(str(path)) == 1_000_000

    def test_metadata_missing_blob(self, storage, temp_dir):
        """Test metadata on a missing blob raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            storage.size(str(temp_dir / "missing.cache"))
        with pytest.raises(FileNotFoundError):
            storage.last_modified(str(temp_dir / "missing.cache"))
        with pytest.raises(FileNotFoundError):
            storage.read(str(temp_dir / "missing.cache"))

    def test_delete(self, storage, temp_dir):
        """Test delete() reports whether a blob was removed."""
        path = temp_dir / "a.cache"
        path.write_bytes(b"content")

        assert storage.delete(str(path)) is True
        assert not path.exists()
        assert storage.delete(str(path)) is False


# ============================================================================
# Error Handling
# ============================================================================


class TestErrorHandling:
    """Test error translation."""

    def test_write_permission_error(self, storage, temp_dir):
        """Test write() raises CachePermissionError."""
        with patch("builtins.open", side_effect=PermissionError("denied")):
            with pytest.raises(CachePermissionError):
                storage.write(str(temp_dir / "a.cache"), b"content")

    def test_write_disk_full(self, storage, temp_dir):
        """Test write() raises CacheDiskFullError on ENOSPC."""
        error = OSError(errno.ENOSPC, "No space left on device")
        with patch("builtins.open", side_effect=error):
            with pytest.raises(CacheDiskFullError):
                storage.write(str(temp_dir / "a.cache"), b"content")

    def test_write_other_os_error(self, storage, temp_dir):
        """Test write() raises CacheWriteError for other OS errors."""
        error = OSError(errno.EIO, "I/O error")
        with patch("builtins.open", side_effect=error):
            with pytest.raises(CacheWriteError):
                storage.write(str(temp_dir / "a.cache"), b"content")

    def test_write_errors_are_cache_write_errors(self):
        """Test the write error hierarchy."""
        assert issubclass(CachePermissionError, CacheWriteError)
        assert issubclass(CacheDiskFullError, CacheWriteError)

    def test_delete_failure(self, storage, temp_dir):
        """Test delete() raises CacheWriteError when removal fails."""
        path = temp_dir / "a.cache"
        path.write_bytes(b"content")

        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            with pytest.raises(CacheWriteError):
                storage.delete(str(path))
