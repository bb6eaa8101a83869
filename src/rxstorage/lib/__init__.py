"""
Local library modules shared across the client.

Modules:
    logs: Logging utilities
    objects: Object serialization for command line output
    paths: Path utilities
    caches: Disk-based caching with TTL support
    debounce: Asyncio debouncer
"""

from rxstorage.lib import caches, debounce, logs, objects, paths

__all__ = ["caches", "debounce", "logs", "objects", "paths"]
