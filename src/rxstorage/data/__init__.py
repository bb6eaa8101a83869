"""
Static and demo data for the RxStorage client.

This package contains fixture data used by the demo services for
development, testing, and demonstrations without a running server.

Modules:
- demo_entities: categories, locations, authors, position schemas and items
"""
