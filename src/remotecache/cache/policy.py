"""Freshness checks and eviction of expired blobs."""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from remotecache.cache.registry import CACHE_SUFFIX, CacheEntry
from remotecache.errors import CacheWriteError
from remotecache.storage.backend import StorageBackend

logger = logging.getLogger(__name__)

# Blobs smaller than this are treated as failed or truncated fetches
MIN_VALID_SIZE = 10


@dataclass
class PurgeResult:
    """Outcome of a purge.

    Attributes:
        removed: Paths of blobs that were deleted
        failed: Paths of expired blobs that could not be deleted
        scanned: Number of blobs inspected
    """

    removed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    scanned: int = 0

    @property
    def ok(self) -> bool:
        """True when every expired blob was removed."""
        return not self.failed


def get_age(mtime: float, now: Optional[float] = None) -> float:
    """Get seconds elapsed since a modification time."""
    if now is None:
        now = time.time()
    return now - mtime


def is_ttl_valid(mtime: float, ttl_seconds: int, now: Optional[float] = None) -> bool:
    """Check if a blob written at mtime is still within its TTL.

    Args:
        mtime: Modification time as a POSIX timestamp
        ttl_seconds: Time-to-live in seconds
        now: Current time (defaults to time.time())

    Returns:
        True if the blob is younger than its TTL
    """
    return get_age(mtime, now) < ttl_seconds


def is_expired(mtime: float, ttl_seconds: int, now: Optional[float] = None) -> bool:
    """Check if a blob is old enough to be purged.

    Args:
        mtime: Modification time as a POSIX timestamp
        ttl_seconds: Time-to-live in seconds
        now: Current time (defaults to time.time())

    Returns:
        True if the blob's age exceeds the TTL
    """
    return get_age(mtime, now) > ttl_seconds


def get_ttl_remaining(
    mtime: float, ttl_seconds: int, now: Optional[float] = None
) -> int:
    """Get remaining seconds until a TTL expires.

    Args:
        mtime: Modification time as a POSIX timestamp
        ttl_seconds: Time-to-live in seconds
        now: Current time (defaults to time.time())

    Returns:
        Whole seconds remaining, never negative
    """
    remaining = ttl_seconds - get_age(mtime, now)
    return max(0, int(remaining))


def is_fresh(
    storage: StorageBackend,
    entry: CacheEntry,
    now: Optional[float] = None,
    min_size: int = MIN_VALID_SIZE,
) -> bool:
    """Check whether an entry's blob can be served without refetching.

    A blob is fresh when it exists, is younger than the entry's TTL and is at
    least min_size bytes. Evaluated against storage on every call.

    Args:
        storage: Storage backend holding the blob
        entry: Entry to check
        now: Current time (defaults to time.time())
        min_size: Minimum valid blob size in bytes

    Returns:
        True if the entry is fresh
    """
    if not storage.exists(entry.path):
        return False

    try:
        mtime = storage.last_modified(entry.path)
        size = storage.size(entry.path)
    except FileNotFoundError:
        # Removed between the existence check and the stat
        return False

    return is_ttl_valid(mtime, entry.ttl, now) and size >= min_size


def count_blobs(storage: StorageBackend, directory: str) -> int:
    """Count cache blobs in a directory."""
    return len(storage.list(directory, f"*{CACHE_SUFFIX}"))


def should_purge(storage: StorageBackend, directory: str, threshold: int) -> bool:
    """Check whether the blob count has reached the purge threshold."""
    return count_blobs(storage, directory) >= threshold


def purge_expired(
    storage: StorageBackend,
    directory: str,
    default_ttl: int,
    now: Optional[float] = None,
) -> PurgeResult:
    """Delete every blob older than the default TTL.

    Per-entry TTLs are not consulted; the bulk purge always uses the cache's
    default TTL. Failures on individual blobs are logged and recorded, and the
    purge moves on to the next blob.

    Args:
        storage: Storage backend holding the blobs
        directory: Cache directory to scan
        default_ttl: Age in seconds beyond which a blob is removed
        now: Current time (defaults to time.time())

    Returns:
        PurgeResult describing what was removed
    """
    if now is None:
        now = time.time()

    result = PurgeResult()
    for path in storage.list(directory, f"*{CACHE_SUFFIX}"):
        result.scanned += 1
        try:
            mtime = storage.last_modified(path)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Cannot stat cache file {path}: {e}")
            result.failed.append(path)
            continue

        if not is_expired(mtime, default_ttl, now):
            continue

        try:
            if storage.delete(path):
                result.removed.append(path)
        except CacheWriteError as e:
            logger.warning(f"Failed to purge cache file {path}: {e}")
            result.failed.append(path)

    if result.removed or result.failed:
        logger.info(
            f"Purged {len(result.removed)} of {result.scanned} cache files "
            f"in {directory} ({len(result.failed)} failed)"
        )
    return result
