"""Test utilities for stash applications.

Provides an in-process async client that drives the ASGI app directly::

    from stash.testing import TestClient
"""

from stash.testing.client import TestClient

__all__ = ["TestClient"]
