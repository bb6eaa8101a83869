"""
Logging utilities for the RxStorage client.

Provides a logger factory that places every module logger under the
``rxstorage`` namespace and configures a single stream handler on that
namespace, so library users can re-route or silence it in one place.
"""

import logging
import os
from pathlib import Path

ROOT_LOGGER_NAME = "rxstorage"

# Default log level from environment or INFO
_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        root.setLevel(getattr(logging, _LOG_LEVEL, logging.INFO))
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(handler)
    return root


def logger(name: str) -> logging.Logger:
    """
    Return a logger for the given name under the ``rxstorage`` namespace.

    If name is a file path (e.g., __file__), the module stem is used, so
    ``src/rxstorage/auth/middleware.py`` logs as ``rxstorage.middleware``.

    Args:
        name: Logger name or __file__ path.

    Returns:
        Configured logging.Logger instance.
    """
    if "/" in name or "\\" in name:
        name = Path(name).stem

    _configure_root()
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
