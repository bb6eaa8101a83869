"""
RxStorage client: an asyncio client for the RxStorage inventory API.

This package authenticates requests with single-flight OAuth token refresh
and exposes debounced, cursor-paginated list controllers for items,
categories, locations, authors and position schemas.

Subpackages:
- auth: Token storage and the authentication middleware
- networking: HTTP client and middleware chain
- models: Entity and pagination models
- services: Data access layer (REST and demo implementations)
- viewmodels: Search and pagination state per list
- data: Static demo fixtures

Main entry points:
- app.main(): The ``rxstorage`` command line
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
