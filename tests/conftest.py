"""
Shared fixtures for the request binder test suite.
"""

import pytest

from binding import Binder, SchemaIntrospector


@pytest.fixture
def introspector():
    """Introspector with a private, disabled cache."""
    return SchemaIntrospector(cache_enabled=False)


@pytest.fixture
def binder(introspector):
    return Binder(introspector=introspector)
