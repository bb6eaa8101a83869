"""
Default on-disk locations used by the RxStorage client.
"""

import os
import tempfile
from pathlib import Path


def temp_dir() -> Path:
    """Return the system temporary directory as a Path."""
    return Path(tempfile.gettempdir())


def token_cache_dir() -> Path:
    """
    Return the directory holding persisted OAuth tokens.

    Honors RXSTORAGE_TOKEN_CACHE_DIR, falling back to a folder under the
    system temp directory.
    """
    configured = os.getenv("RXSTORAGE_TOKEN_CACHE_DIR")
    if configured:
        return Path(configured).expanduser()
    return temp_dir() / "rxstorage" / "tokens"
