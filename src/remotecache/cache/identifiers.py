"""Derivation of filesystem-safe entry identifiers from cache keys."""

import hashlib
import re

SUPPORTED_ALGORITHMS = ("md5", "sha256")

_ID_PATTERNS = {
    "md5": re.compile(r"[0-9a-f]{32}"),
    "sha256": re.compile(r"[0-9a-f]{64}"),
}


def _check_algorithm(algorithm: str) -> None:
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported algorithm: {algorithm}")


def is_entry_id(value: str, algorithm: str = "md5") -> bool:
    """Check whether a string already is a derived entry id.

    Args:
        value: String to check
        algorithm: Hash algorithm ('md5', 'sha256')

    Returns:
        True if value is a lowercase hex digest of the algorithm's length

    Raises:
        ValueError: If algorithm not supported
    """
    _check_algorithm(algorithm)
    return _ID_PATTERNS[algorithm].fullmatch(value) is not None


def derive_id(key: str, algorithm: str = "md5") -> str:
    """Map a cache key to a stable entry id.

    Keys that already look like an entry id are returned unchanged, which
    allows looking up an entry directly by its id.

    Args:
        key: Cache key (usually a URL)
        algorithm: Hash algorithm ('md5', 'sha256')

    Returns:
        Hex digest identifying the entry

    Raises:
        ValueError: If algorithm not supported

    Examples:
        >>> len(derive_id('http://example.com/a'))
        32
        >>> derive_id('65a8e27d8879283831b664bd8b7f0ad4')
        '65a8e27d8879283831b664bd8b7f0ad4'
    """
    if is_entry_id(key, algorithm):
        return key

    if algorithm == "md5":
        hasher = hashlib.md5()
    else:
        hasher = hashlib.sha256()

    hasher.update(key.encode("utf-8"))
    return hasher.hexdigest()
