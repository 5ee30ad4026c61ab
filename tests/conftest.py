"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For standard test utilities, see tests/__init__.py
"""

import pytest

from tests import make_session_factory, uow_factory_for


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def session_factory():
    """Fresh schema per test, on TEST_DATABASE_URL (in-memory SQLite by default)."""
    engine, factory = make_session_factory()
    yield factory
    engine.dispose()


@pytest.fixture
def uow_factory(session_factory):
    return uow_factory_for(session_factory)
