"""Exceptions raised by the remote file cache."""

from typing import Optional


class CacheError(Exception):
    """Base exception for cache-related errors."""

    pass


class InvalidKeyError(CacheError, ValueError):
    """Raised when a cache key is not a non-empty string."""

    pass


class FetchError(CacheError):
    """Raised when remote content cannot be retrieved.

    Attributes:
        key: The cache key (usually a URL) that failed to fetch
        status_code: HTTP status code, when one is known
    """

    def __init__(
        self, message: str, key: Optional[str] = None, status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.key = key
        self.status_code = status_code


class CacheWriteError(CacheError):
    """Raised when a blob cannot be written to or removed from the cache directory."""

    pass


class CachePermissionError(CacheWriteError):
    """Raised when cache directory permissions are insufficient."""

    pass


class CacheDiskFullError(CacheWriteError):
    """Raised when disk is full and cannot write to cache."""

    pass
