"""Cache façade tying key derivation, the entry registry and the eviction policy together."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from typing_extensions import TypedDict

from remotecache.cache.config import CacheConfig
from remotecache.cache.policy import (
    PurgeResult,
    count_blobs,
    get_age,
    get_ttl_remaining,
    is_fresh,
    purge_expired,
    should_purge,
)
from remotecache.cache.registry import CacheEntry, EntryRegistry
from remotecache.errors import CacheWriteError, InvalidKeyError
from remotecache.fetch import Fetcher, fetch_remote
from remotecache.storage.backend import StorageBackend
from remotecache.utils import TTLValue, normalize_ttl, validate_key

logger = logging.getLogger(__name__)

CacheValue = Union[bytes, bytearray, memoryview, str]


class EntryStatus(TypedDict):
    """Status of a cached blob."""

    entry_id: str
    path: str
    ttl: int
    size_bytes: int
    modified_at: str
    age_seconds: float
    ttl_remaining: int
    fresh: bool


class CacheStats(TypedDict):
    """In-process cache statistics."""

    cache_dir: str
    default_ttl: int
    purge_threshold: int
    entries: int
    blobs: int
    cache_hits: int
    cache_misses: int
    fetches: int
    writes: int
    write_failures: int
    purges: int
    purged_files: int
    cache_hit_rate: float


@dataclass
class BatchResult:
    """Per-item outcome of a multi-key operation.

    Attributes:
        succeeded: Keys (or entry ids for clear) that were handled
        failed: Keys (or entry ids for clear) that could not be handled
    """

    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no item failed."""
        return not self.failed


def _to_bytes(value: CacheValue) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(
        f"Cache values must be bytes or str, got {type(value).__name__}"
    )


class RemoteFileCache:
    """Disk cache for remotely fetched content.

    Each cache key (usually a URL) maps to one blob in the cache directory.
    ``get`` serves the blob while it is fresh and refetches it otherwise.
    Writes trigger a purge of expired blobs once the directory holds
    ``purge_threshold`` blobs or more.

    Not safe for concurrent writers: there is no locking, and ``has`` can
    be out of date as soon as it returns.

    Examples:
        >>> cache = RemoteFileCache('data/cache', default_ttl=3600)
        >>> content = cache.get('https://example.com/feed.xml')  # fetches
        >>> content = cache.get('https://example.com/feed.xml')  # from disk
    """

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        default_ttl: Optional[TTLValue] = None,
        purge_threshold: Optional[int] = None,
        config: Optional[CacheConfig] = None,
        fetcher: Optional[Fetcher] = fetch_remote,
        storage: Optional[StorageBackend] = None,
    ):
        """Initialize the cache.

        Args:
            cache_dir: Cache location (overrides config, default data/cache)
            default_ttl: Seconds items stay fresh (overrides config, default 1 day)
            purge_threshold: Blob count that triggers a purge after a write
            config: Cache configuration (defaults to CacheConfig())
            fetcher: Callable returning the content for a key on a miss.
                None disables fetching; misses then return the default value.
            storage: Storage backend for blob I/O

        Raises:
            CachePermissionError: If the cache directory cannot be created
        """
        config = config or CacheConfig()

        overrides: Dict[str, Any] = {}
        if cache_dir is not None:
            overrides["cache_dir"] = cache_dir
        if default_ttl is not None:
            overrides["default_ttl"] = normalize_ttl(default_ttl)
        if purge_threshold is not None:
            overrides["purge_threshold"] = purge_threshold
        self.config = replace(config, **overrides) if overrides else config

        self.fetcher = fetcher
        self.storage = storage or StorageBackend()
        self.cache_dir = str(self.config.cache_dir)
        self.storage.mkdir(self.cache_dir)

        self.registry = EntryRegistry(
            self.cache_dir,
            self.config.default_ttl,
            storage=self.storage,
            algorithm=self.config.id_algorithm,
        )
        if self.config.load_on_init:
            self.registry.load_from_storage()

        self._stats = {
            "cache_hits": 0,
            "cache_misses": 0,
            "fetches": 0,
            "writes": 0,
            "write_failures": 0,
            "purges": 0,
            "purged_files": 0,
        }

    @property
    def default_ttl(self) -> int:
        return self.config.default_ttl

    @property
    def purge_threshold(self) -> int:
        return self.config.purge_threshold

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return is_fresh(self.storage, entry, min_size=self.config.min_valid_size)

    def _fetch(self, key: str) -> bytes:
        """Fetch content for a key; FetchError propagates to the caller."""
        self._stats["fetches"] += 1
        logger.debug(f"Fetching {key}")
        return self.fetcher(key)

    # =========================================================================
    # Single-key operations
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Fetch a value from the cache, refreshing it from remote when stale.

        Args:
            key: Cache key (usually a URL)
            default: Value returned when nothing can be served

        Returns:
            Blob content, or default if the entry is stale and cannot be refreshed

        Raises:
            InvalidKeyError: If key is not a non-empty string
            FetchError: If the fetcher fails to retrieve fresh content
        """
        validate_key(key)
        entry = self.registry.get_or_create(key)

        if self._is_fresh(entry):
            self._stats["cache_hits"] += 1
            logger.debug(f"Cache hit for {key}")
        else:
            self._stats["cache_misses"] += 1
            logger.debug(f"Cache miss for {key}")
            if self.fetcher is None:
                return default
            if not self.set(key, self._fetch(key)):
                # The old blob is stale and the new one was not stored
                return default

        try:
            return self.storage.read(entry.path)
        except FileNotFoundError:
            return default

    def set(self, key: str, value: CacheValue, ttl: Optional[TTLValue] = None) -> bool:
        """Persist a value in the cache.

        The TTL only applies when the key has no entry yet; an existing
        entry keeps the TTL it was registered with.

        Args:
            key: Cache key
            value: Content to store (str is stored UTF-8 encoded)
            ttl: Optional TTL in seconds or as a timedelta

        Returns:
            True on success, False if the blob could not be written

        Raises:
            InvalidKeyError: If key is not a non-empty string
        """
        validate_key(key)
        data = _to_bytes(value)
        entry = self.registry.get_or_create(key, normalize_ttl(ttl))

        try:
            self.storage.mkdir(self.cache_dir)
            self.storage.write(entry.path, data)
        except CacheWriteError as e:
            self._stats["write_failures"] += 1
            logger.error(f"Cannot cache {key}: {e}")
            return False

        self._stats["writes"] += 1
        if should_purge(self.storage, self.cache_dir, self.purge_threshold):
            self.purge()
        return True

    def delete(self, key: str) -> bool:
        """Delete an item from the cache.

        Args:
            key: Cache key

        Returns:
            True if the blob existed and was removed, False otherwise

        Raises:
            InvalidKeyError: If key is not a non-empty string
        """
        validate_key(key)
        entry = self.registry.get_or_create(key)
        self.registry.remove(key)

        try:
            return self.storage.delete(entry.path)
        except CacheWriteError as e:
            logger.error(f"Cannot delete cached {key}: {e}")
            return False

    def has(self, key: str) -> bool:
        """Determine whether a blob is present for a key.

        Only existence is checked, not freshness. The answer can be stale
        immediately if another process removes the blob.

        Raises:
            InvalidKeyError: If key is not a non-empty string
        """
        validate_key(key)
        return self.storage.exists(self.registry.get_or_create(key).path)

    def clear(self, expired_only: bool = False) -> BatchResult:
        """Delete registered entries.

        Args:
            expired_only: Only delete entries that are no longer fresh

        Returns:
            BatchResult listing the entry ids removed or failed
        """
        result = BatchResult()

        for entry in self.registry.entries():
            if expired_only and self._is_fresh(entry):
                continue

            self.registry.remove(entry.entry_id)
            try:
                self.storage.delete(entry.path)
            except CacheWriteError as e:
                logger.warning(f"Failed to clear cache file {entry.path}: {e}")
                result.failed.append(entry.entry_id)
            else:
                result.succeeded.append(entry.entry_id)

        return result

    # =========================================================================
    # Multi-key operations
    # =========================================================================

    @staticmethod
    def _check_keys(keys: Iterable[str]) -> List[str]:
        if isinstance(keys, (str, bytes)):
            raise InvalidKeyError("Keys must be an iterable of strings, not a string")
        keys = list(keys)
        for key in keys:
            validate_key(key)
        return keys

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> Dict[str, Any]:
        """Obtain multiple values by their keys.

        Each key is handled by ``get``; a FetchError for one key aborts the call.

        Raises:
            InvalidKeyError: If keys is not an iterable of valid keys
            FetchError: If any refresh fails
        """
        return {key: self.get(key, default) for key in self._check_keys(keys)}

    def set_multiple(
        self,
        values: Union[Mapping, Iterable[Tuple[str, CacheValue]]],
        ttl: Optional[TTLValue] = None,
    ) -> BatchResult:
        """Persist several key/value pairs.

        Args:
            values: Mapping or iterable of (key, value) pairs
            ttl: Optional TTL applied to entries created by this call

        Returns:
            BatchResult listing written and failed keys

        Raises:
            InvalidKeyError: If any key is invalid (nothing is written)
        """
        pairs = list(values.items() if isinstance(values, Mapping) else values)
        self._check_keys([key for key, _ in pairs])

        result = BatchResult()
        for key, value in pairs:
            if self.set(key, value, ttl):
                result.succeeded.append(key)
            else:
                result.failed.append(key)
        return result

    def delete_multiple(self, keys: Iterable[str]) -> BatchResult:
        """Delete several items.

        Keys without a blob are reported as failed, matching ``delete``.

        Raises:
            InvalidKeyError: If any key is invalid (nothing is deleted)
        """
        result = BatchResult()
        for key in self._check_keys(keys):
            if self.delete(key):
                result.succeeded.append(key)
            else:
                result.failed.append(key)
        return result

    # =========================================================================
    # Maintenance and introspection
    # =========================================================================

    def purge(self) -> PurgeResult:
        """Remove every blob older than the default TTL."""
        result = purge_expired(self.storage, self.cache_dir, self.default_ttl)
        self._stats["purges"] += 1
        self._stats["purged_files"] += len(result.removed)
        return result

    def count(self) -> int:
        """Number of blobs in the cache directory."""
        return count_blobs(self.storage, self.cache_dir)

    def load(self) -> int:
        """Register entries for the blobs currently in the cache directory."""
        return self.registry.load_from_storage()

    def entries(self) -> List[CacheEntry]:
        """Registered entries."""
        return self.registry.entries()

    def get_status(self, key: str) -> Optional[EntryStatus]:
        """Get cache status for a key.

        Args:
            key: Cache key or entry id

        Returns:
            Status dict, or None if no blob is stored for the key
        """
        validate_key(key)
        entry = self.registry.get_or_create(key)

        try:
            mtime = self.storage.last_modified(entry.path)
            size = self.storage.size(entry.path)
        except FileNotFoundError:
            return None

        return {
            "entry_id": entry.entry_id,
            "path": entry.path,
            "ttl": entry.ttl,
            "size_bytes": size,
            "modified_at": datetime.fromtimestamp(mtime, timezone.utc).isoformat(),
            "age_seconds": get_age(mtime),
            "ttl_remaining": get_ttl_remaining(mtime, entry.ttl),
            "fresh": self._is_fresh(entry),
        }

    def get_stats(self) -> CacheStats:
        """Get cache statistics for this process."""
        stats = dict(self._stats)
        total_requests = stats["cache_hits"] + stats["cache_misses"]
        stats.update(
            {
                "cache_dir": self.cache_dir,
                "default_ttl": self.default_ttl,
                "purge_threshold": self.purge_threshold,
                "entries": len(self.registry),
                "blobs": self.count(),
                "cache_hit_rate": (
                    stats["cache_hits"] / total_requests if total_requests > 0 else 0.0
                ),
            }
        )
        return stats
