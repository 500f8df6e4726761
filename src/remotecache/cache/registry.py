"""In-memory registry of cache entries."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from remotecache.cache.identifiers import derive_id, is_entry_id
from remotecache.storage.backend import StorageBackend

logger = logging.getLogger(__name__)

CACHE_SUFFIX = ".cache"

_TTL_SUFFIX = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class CacheEntry:
    """A registered cache entry.

    The entry only points at its blob; content lives in storage.

    Attributes:
        entry_id: Derived identifier, used as the blob filename stem
        ttl: Seconds the blob stays fresh after its last write
        path: Location of the backing blob
    """

    entry_id: str
    ttl: int
    path: str


def make_entry_name(entry_id: str, ttl: int, default_ttl: int) -> str:
    """Build the blob filename for an entry.

    The TTL suffix is only written when it differs from the default.

    Examples:
        >>> make_entry_name('65a8e27d8879283831b664bd8b7f0ad4', 3600, 86400)
        '65a8e27d8879283831b664bd8b7f0ad4-3600.cache'
        >>> make_entry_name('65a8e27d8879283831b664bd8b7f0ad4', 86400, 86400)
        '65a8e27d8879283831b664bd8b7f0ad4.cache'
    """
    if ttl == default_ttl:
        return f"{entry_id}{CACHE_SUFFIX}"
    return f"{entry_id}-{ttl}{CACHE_SUFFIX}"


def parse_entry_name(
    filename: str, default_ttl: int, algorithm: str = "md5"
) -> Optional[Tuple[str, int, bool]]:
    """Parse a blob filename into its entry id and TTL.

    Args:
        filename: Blob filename (``<id>-<ttl>.cache`` or ``<id>.cache``)
        default_ttl: TTL implied by names without a suffix
        algorithm: Hash algorithm the ids were derived with

    Returns:
        Tuple of (entry_id, ttl, explicit) where explicit tells whether the TTL
        came from the filename, or None if the name holds no valid entry id
    """
    name = Path(filename).name
    if not name.endswith(CACHE_SUFFIX):
        return None

    stem = name[: -len(CACHE_SUFFIX)]
    entry_id, _, suffix = stem.partition("-")
    if not is_entry_id(entry_id, algorithm):
        return None

    if _TTL_SUFFIX.fullmatch(suffix):
        return entry_id, int(suffix), True

    if suffix:
        logger.debug(f"Ignoring malformed TTL suffix in cache file {name}")
    return entry_id, default_ttl, False


class EntryRegistry:
    """Maps cache keys to their entries.

    Entries are indexed by entry id, so a key and its id resolve to the same
    entry and entries recovered from a directory scan are found again by key.
    """

    def __init__(
        self,
        cache_dir: str,
        default_ttl: int,
        storage: Optional[StorageBackend] = None,
        algorithm: str = "md5",
    ):
        """Initialize the registry.

        Args:
            cache_dir: Directory holding the blobs
            default_ttl: TTL for entries created without an override
            storage: Storage backend used for directory scans
            algorithm: Hash algorithm for entry ids
        """
        self.cache_dir = str(cache_dir)
        self.default_ttl = default_ttl
        self.storage = storage or StorageBackend()
        self.algorithm = algorithm
        self._entries: Dict[str, CacheEntry] = {}

    def entry_id(self, key: str) -> str:
        """Get the entry id for a key."""
        return derive_id(key, self.algorithm)

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get the entry for a key without creating it."""
        return self._entries.get(self.entry_id(key))

    def get_or_create(self, key: str, ttl: Optional[int] = None) -> CacheEntry:
        """Get the entry for a key, registering a new one on first reference.

        A TTL override only applies when the entry is created; existing
        entries are returned unchanged.

        Args:
            key: Cache key
            ttl: Optional TTL override in seconds

        Returns:
            The registered entry
        """
        entry_id = self.entry_id(key)
        entry = self._entries.get(entry_id)
        if entry is not None:
            return entry

        if ttl is None:
            ttl = self.default_ttl

        path = self.storage.join_paths(
            self.cache_dir, make_entry_name(entry_id, ttl, self.default_ttl)
        )
        entry = CacheEntry(entry_id=entry_id, ttl=ttl, path=path)
        self._entries[entry_id] = entry
        return entry

    def remove(self, key: str) -> Optional[CacheEntry]:
        """Remove the entry for a key.

        Returns:
            The removed entry, or None if the key was not registered
        """
        return self._entries.pop(self.entry_id(key), None)

    def clear(self) -> None:
        """Forget every registered entry."""
        self._entries.clear()

    def load_from_storage(self) -> int:
        """Register an entry for every blob in the cache directory.

        Names carrying a TTL suffix take precedence over id-only names for
        the same entry. Files without a valid entry id are skipped.

        Returns:
            Number of entries registered by the scan
        """
        explicit = set()
        loaded = 0

        for path in self.storage.list(self.cache_dir, f"*{CACHE_SUFFIX}"):
            parsed = parse_entry_name(path, self.default_ttl, self.algorithm)
            if parsed is None:
                logger.debug(f"Skipping unrecognized cache file {path}")
                continue

            entry_id, ttl, has_suffix = parsed
            if entry_id in explicit and not has_suffix:
                continue
            if has_suffix:
                explicit.add(entry_id)

            if entry_id not in self._entries:
                loaded += 1
            self._entries[entry_id] = CacheEntry(entry_id=entry_id, ttl=ttl, path=path)

        logger.debug(f"Loaded {loaded} cache entries from {self.cache_dir}")
        return loaded

    def entries(self) -> List[CacheEntry]:
        """Get all registered entries."""
        return list(self._entries.values())

    def __contains__(self, key: str) -> bool:
        return self.entry_id(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(self.entries())
