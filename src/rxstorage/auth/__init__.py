"""
Credential handling for the RxStorage client.

This package provides:
- Token storage (in-memory and diskcache-backed)
- AuthenticationMiddleware: bearer injection with single-flight refresh
- OptionalAuthMiddleware: bearer injection for public endpoints
"""

from rxstorage.auth.middleware import (
    AuthenticationMiddleware,
    OptionalAuthMiddleware,
    TokenResponse,
)
from rxstorage.auth.token_storage import (
    DiskTokenStorage,
    MemoryTokenStorage,
    TokenStorage,
)

__all__ = [
    "AuthenticationMiddleware",
    "DiskTokenStorage",
    "MemoryTokenStorage",
    "OptionalAuthMiddleware",
    "TokenResponse",
    "TokenStorage",
]
