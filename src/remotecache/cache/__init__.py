"""Disk cache for remotely fetched content.

This module provides TTL-based caching of remote resources with a
count-triggered purge of expired blobs.

Key components:
- RemoteFileCache: Main cache interface
- CacheConfig: Configuration management
- EntryRegistry: Key to entry index
- policy: Freshness checks and purging
"""

from remotecache.cache.config import CacheConfig
from remotecache.cache.identifiers import derive_id, is_entry_id
from remotecache.cache.manager import BatchResult, RemoteFileCache
from remotecache.cache.policy import MIN_VALID_SIZE, PurgeResult
from remotecache.cache.registry import CacheEntry, EntryRegistry
from remotecache.errors import (
    CacheDiskFullError,
    CacheError,
    CachePermissionError,
    CacheWriteError,
    FetchError,
    InvalidKeyError,
)

__all__ = [
    "RemoteFileCache",
    "CacheConfig",
    "CacheEntry",
    "EntryRegistry",
    "BatchResult",
    "PurgeResult",
    "MIN_VALID_SIZE",
    "derive_id",
    "is_entry_id",
    "CacheError",
    "CacheWriteError",
    "CacheDiskFullError",
    "CachePermissionError",
    "FetchError",
    "InvalidKeyError",
]
