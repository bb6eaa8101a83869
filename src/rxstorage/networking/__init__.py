"""HTTP client and request middleware chain."""

from rxstorage.networking.client import APIClient
from rxstorage.networking.middleware import LoggingMiddleware, Middleware, build_handler

__all__ = ["APIClient", "LoggingMiddleware", "Middleware", "build_handler"]
