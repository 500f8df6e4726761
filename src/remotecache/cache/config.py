"""Cache configuration management."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import orjson

from remotecache.cache.identifiers import SUPPORTED_ALGORITHMS

DEFAULT_CACHE_DIR = Path("data/cache")
DEFAULT_CONFIG_PATH = Path.home() / ".remotecache" / "config.json"


@dataclass
class CacheConfig:
    """Configuration for the remote file cache.

    Attributes:
        cache_dir: Directory holding the cached blobs (data/cache)
        default_ttl: Default time-to-live in seconds (86400, 1 day)
        purge_threshold: Blob count at or above which a write triggers a purge
        min_valid_size: Blobs smaller than this (bytes) count as failed fetches
        id_algorithm: Hash algorithm for entry ids ('md5', 'sha256')
        load_on_init: Scan the cache directory into the registry on startup
    """

    cache_dir: Path = DEFAULT_CACHE_DIR
    default_ttl: int = 86400  # 1 day
    purge_threshold: int = 10
    min_valid_size: int = 10  # bytes
    id_algorithm: str = "md5"
    load_on_init: bool = True

    def __post_init__(self):
        """Normalize cache_dir and validate numeric settings."""
        if self.cache_dir is None:
            self.cache_dir = DEFAULT_CACHE_DIR
        self.cache_dir = Path(self.cache_dir).expanduser()

        if self.default_ttl < 0:
            raise ValueError(f"default_ttl cannot be negative: {self.default_ttl}")
        if self.purge_threshold < 1:
            raise ValueError(
                f"purge_threshold must be at least 1: {self.purge_threshold}"
            )
        if self.min_valid_size < 0:
            raise ValueError(
                f"min_valid_size cannot be negative: {self.min_valid_size}"
            )
        if self.id_algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm: {self.id_algorithm}")

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            CacheConfig instance
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        with open(config_path, "rb") as f:
            data = orjson.loads(f.read())

        if "cache_dir" in data:
            data["cache_dir"] = Path(data["cache_dir"])

        return cls(**data)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file.

        Args:
            config_path: Path to config file. If None, uses default location.
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "cache_dir": str(self.cache_dir),
            "default_ttl": self.default_ttl,
            "purge_threshold": self.purge_threshold,
            "min_valid_size": self.min_valid_size,
            "id_algorithm": self.id_algorithm,
            "load_on_init": self.load_on_init,
        }

        with open(config_path, "wb") as f:
            f.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            REMOTECACHE_DIR: Cache directory path
            REMOTECACHE_TTL: Default TTL in seconds
            REMOTECACHE_PURGE_THRESHOLD: Blob count that triggers a purge
            REMOTECACHE_MIN_VALID_SIZE: Minimum valid blob size in bytes
            REMOTECACHE_ID_ALGORITHM: Entry id hash algorithm

        Returns:
            CacheConfig instance
        """
        kwargs = {}

        if os.getenv("REMOTECACHE_DIR"):
            kwargs["cache_dir"] = Path(os.getenv("REMOTECACHE_DIR"))

        if os.getenv("REMOTECACHE_TTL"):
            kwargs["default_ttl"] = int(os.getenv("REMOTECACHE_TTL"))

        if os.getenv("REMOTECACHE_PURGE_THRESHOLD"):
            kwargs["purge_threshold"] = int(os.getenv("REMOTECACHE_PURGE_THRESHOLD"))

        if os.getenv("REMOTECACHE_MIN_VALID_SIZE"):
            kwargs["min_valid_size"] = int(os.getenv("REMOTECACHE_MIN_VALID_SIZE"))

        if os.getenv("REMOTECACHE_ID_ALGORITHM"):
            kwargs["id_algorithm"] = os.getenv("REMOTECACHE_ID_ALGORITHM")

        return cls(**kwargs)


# Global cache configuration instance
_global_config: Optional[CacheConfig] = None


def get_global_config() -> CacheConfig:
    """Get global cache configuration.

    Returns:
        Global CacheConfig instance
    """
    global _global_config
    if _global_config is None:
        # Config file wins when present, otherwise env, otherwise defaults
        if DEFAULT_CONFIG_PATH.exists():
            try:
                _global_config = CacheConfig.load()
            except (OSError, ValueError, TypeError):
                _global_config = None
        if _global_config is None:
            _global_config = CacheConfig.from_env()
    return _global_config


def set_global_config(config: Optional[CacheConfig]) -> None:
    """Set global cache configuration.

    Args:
        config: CacheConfig instance to use globally, or None to reset
    """
    global _global_config
    _global_config = config
