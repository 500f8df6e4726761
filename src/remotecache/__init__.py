"""remotecache: Local disk cache for remotely fetched content."""

__version__ = "0.1.0"

from remotecache.cache import CacheConfig, RemoteFileCache
from remotecache.errors import CacheError, FetchError, InvalidKeyError

__all__ = [
    "RemoteFileCache",
    "CacheConfig",
    "CacheError",
    "FetchError",
    "InvalidKeyError",
    "__version__",
]
