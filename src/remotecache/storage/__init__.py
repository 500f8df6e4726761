"""Storage backend for blob I/O operations.

This module provides the filesystem abstraction the cache writes its
blobs through.
"""

from remotecache.storage.backend import StorageBackend

__all__ = [
    "StorageBackend",
]
