"""Retrieval of remote content for cache misses."""

import logging
from typing import Callable, Optional

import cloudfiles

from remotecache.errors import FetchError
from remotecache.utils import resolve_path

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], bytes]


def _status_code(error: Exception) -> Optional[int]:
    """Pull an HTTP status code out of a transport exception, if it has one."""
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def fetch_remote(key: str) -> bytes:
    """Fetch the content behind a URL or path.

    Anything cloudfiles can read is supported: http(s), gs, s3 and local
    paths (resolved to file:// URLs).

    Args:
        key: URL or path to fetch

    Returns:
        Raw content

    Raises:
        FetchError: If the resource is unreachable, missing or empty

    Examples:
        >>> content = fetch_remote('https://example.com/index.html')
    """
    location = resolve_path(key)
    logger.debug(f"Fetching {location}")

    try:
        content = cloudfiles.CloudFile(location).get()
    except Exception as e:
        raise FetchError(
            f"Failed to fetch {key}: {e}", key=key, status_code=_status_code(e)
        ) from e

    if not content:
        raise FetchError(f"Remote resource not found or empty: {key}", key=key)

    return content
