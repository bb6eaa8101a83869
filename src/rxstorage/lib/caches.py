"""
Disk-backed key/value storage with optional TTL.

Wraps the diskcache library, which is thread-safe and process-safe, so the
same cache directory can be shared between the CLI and a long running
client without extra locking.
"""

from pathlib import Path
from typing import Any

import diskcache


class DiskCache:
    """
    Disk-based cache with TTL support.

    Attributes:
        cache_dir: Path to the cache directory.
    """

    def __init__(self, cache_dir: str | Path) -> None:
        """
        Open (or create) the cache.

        Args:
            cache_dir: Directory path for storing cache files.
                       Created if it doesn't exist.
        """
        self.cache_dir = Path(cache_dir)
        self._cache = diskcache.Cache(str(self.cache_dir))

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key, or default when missing or expired."""
        return self._cache.get(key, default=default)

    def set(self, key: str, value: Any, expire: float | None = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key string.
            value: Value to store (must be picklable).
            expire: TTL in seconds. None means no expiration.
        """
        self._cache.set(key, value, expire=expire)

    def delete(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        self._cache.delete(key)

    def close(self) -> None:
        """Close the cache and release file handles."""
        self._cache.close()
