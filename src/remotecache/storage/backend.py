"""Storage backend for handling blob I/O in the cache directory.

This module provides the filesystem operations the cache policy needs:
existence, modification time, size, read, write, delete and listing.
"""

import errno
import logging
from pathlib import Path
from typing import List, Union

from remotecache.errors import (
    CacheDiskFullError,
    CachePermissionError,
    CacheWriteError,
)

logger = logging.getLogger(__name__)


class StorageBackend:
    """Handles all blob I/O operations for the cache.

    Provides a small interface over the local filesystem:
    - File system operations (exists, mkdir, join_paths, list, delete)
    - Blob metadata (last_modified, size)
    - Blob I/O (read, atomic write)

    Examples:
        >>> storage = StorageBackend()
        >>> storage.write('/tmp/cache/abc.cache', b'content')
        True
        >>> storage.read('/tmp/cache/abc.cache')
        b'content'
    """

    def exists(self, path: Union[str, Path]) -> bool:
        """Check if a blob exists.

        Args:
            path: Path to check

        Returns:
            True if path exists and is a file
        """
        return Path(path).is_file()

    def mkdir(
        self, path: Union[str, Path], parents: bool = True, exist_ok: bool = True
    ) -> None:
        """Create a directory.

        Args:
            path: Directory path to create
            parents: Create parent directories if needed
            exist_ok: Don't error if directory exists

        Raises:
            CachePermissionError: If the directory cannot be created
        """
        try:
            Path(path).mkdir(parents=parents, exist_ok=exist_ok)
        except PermissionError as e:
            raise CachePermissionError(
                f"Cannot create cache directory at {path}: {e}"
            ) from e

    def join_paths(self, *parts: Union[str, Path]) -> str:
        """Join path components.

        Args:
            *parts: Path components to join

        Returns:
            Joined path string

        Examples:
            >>> storage = StorageBackend()
            >>> storage.join_paths('data', 'cache', 'abc.cache')
            'data/cache/abc.cache'
        """
        return str(Path(*parts))

    def last_modified(self, path: Union[str, Path]) -> float:
        """Get the modification time of a blob.

        Args:
            path: Blob path

        Returns:
            Modification time as a POSIX timestamp

        Raises:
            FileNotFoundError: If the blob does not exist
        """
        return Path(path).stat().st_mtime

    def size(self, path: Union[str, Path]) -> int:
        """Get the size of a blob in bytes.

        Args:
            path: Blob path

        Returns:
            Size in bytes

        Raises:
            FileNotFoundError: If the blob does not exist
        """
        return Path(path).stat().st_size

    def read(self, path: Union[str, Path]) -> bytes:
        """Read a blob.

        Args:
            path: Blob path

        Returns:
            Raw blob content

        Raises:
            FileNotFoundError: If the blob does not exist
        """
        with open(path, "rb") as f:
            return f.read()

    def write(self, path: Union[str, Path], data: bytes) -> bool:
        """Write a blob atomically.

        Content goes to a temporary sibling first and is renamed into place, so
        readers never observe a partially written blob.

        Args:
            path: Blob path
            data: Raw content

        Returns:
            True once the blob is in place

        Raises:
            CachePermissionError: If the cache directory is not writable
            CacheDiskFullError: If the disk is full
            CacheWriteError: For any other OS error
        """
        path = Path(path)
        temp_path = path.with_suffix(path.suffix + ".tmp")

        try:
            with open(temp_path, "wb") as f:
                f.write(data)
            temp_path.replace(path)
        except PermissionError as e:
            self._discard(temp_path)
            raise CachePermissionError(f"Cannot write cache file {path}: {e}") from e
        except OSError as e:
            self._discard(temp_path)
            if e.errno == errno.ENOSPC:
                raise CacheDiskFullError(f"Disk full while writing {path}") from e
            raise CacheWriteError(f"Cannot write cache file {path}: {e}") from e

        return True

    def delete(self, path: Union[str, Path]) -> bool:
        """Delete a blob.

        Args:
            path: Blob path

        Returns:
            True if the blob existed and was removed, False if it was absent

        Raises:
            CacheWriteError: If the blob exists but cannot be removed
        """
        path_obj = Path(path)
        try:
            path_obj.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheWriteError(f"Cannot remove cache file {path}: {e}") from e
        return True

    def list(self, directory: Union[str, Path], pattern: str = "*.cache") -> List[str]:
        """List blobs in a directory matching a glob pattern.

        Args:
            directory: Directory to scan
            pattern: Glob pattern for blob names

        Returns:
            Sorted list of blob paths (empty if the directory is missing)
        """
        dir_path = Path(directory)
        if not dir_path.is_dir():
            return []
        return sorted(str(p) for p in dir_path.glob(pattern) if p.is_file())

    @staticmethod
    def _discard(temp_path: Path) -> None:
        """Remove a leftover temp file after a failed write."""
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to clean up temp file {temp_path}: {e}")
