"""Utility functions for key validation, path handling and TTL normalization."""

from datetime import timedelta
from pathlib import Path
from typing import Optional, Union

from remotecache.errors import InvalidKeyError

TTLValue = Union[int, timedelta]

# Protocols cloudfiles can read; anything else is a local path
REMOTE_PROTOCOLS = ("gs://", "s3://", "http://", "https://", "file://", "mem://")


def is_remote_path(path: Union[str, Path]) -> bool:
    """Check if a key names a location cloudfiles reads directly.

    Examples:
        >>> is_remote_path('https://example.com/feed.xml')
        True
        >>> is_remote_path('/local/path/file.txt')
        False
    """
    return str(path).startswith(REMOTE_PROTOCOLS)


def resolve_path(
    path: Union[str, Path],
    base_dir: Optional[Union[str, Path]] = None,
) -> str:
    """Resolve a path into a location cloudfiles understands.

    Remote paths are returned as-is; local paths become absolute file:// URLs.

    Args:
        path: Path to resolve
        base_dir: Base directory for relative paths (defaults to cwd)

    Returns:
        Resolved path as string

    Examples:
        >>> resolve_path('s3://bucket/file.json')
        's3://bucket/file.json'
        >>> resolve_path('data/file.csv')
        'file:///current/working/dir/data/file.csv'
    """
    if is_remote_path(path):
        return str(path)

    path_obj = Path(path)
    if not path_obj.is_absolute():
        if base_dir:
            path_obj = Path(base_dir) / path_obj
        path_obj = path_obj.resolve()

    return "file://" + str(path_obj)


def validate_key(key: str) -> None:
    """Validate that a cache key is a legal value.

    Args:
        key: Cache key to validate

    Raises:
        InvalidKeyError: If key is not a string or is empty

    Examples:
        >>> validate_key('https://example.com/a')  # OK
        >>> validate_key('')
        Traceback (most recent call last):
            ...
        remotecache.errors.InvalidKeyError: Cache key cannot be empty
    """
    if not isinstance(key, str):
        raise InvalidKeyError(f"Cache key must be a string, got {type(key).__name__}")

    if not key:
        raise InvalidKeyError("Cache key cannot be empty")


def normalize_ttl(ttl: Optional[TTLValue]) -> Optional[int]:
    """Convert a TTL given as seconds or a timedelta into whole seconds.

    Args:
        ttl: TTL in seconds, a timedelta, or None

    Returns:
        TTL in whole seconds, or None if ttl is None

    Raises:
        ValueError: If the TTL is negative
        TypeError: If the TTL has an unsupported type
    """
    if ttl is None:
        return None

    if isinstance(ttl, timedelta):
        seconds = int(ttl.total_seconds())
    elif isinstance(ttl, int) and not isinstance(ttl, bool):
        seconds = ttl
    else:
        raise TypeError(f"TTL must be int or timedelta, got {type(ttl).__name__}")

    if seconds < 0:
        raise ValueError(f"TTL cannot be negative: {seconds}")

    return seconds
