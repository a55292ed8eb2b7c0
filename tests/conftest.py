"""
Pytest configuration and common fixtures for weathervane tests.

This module provides shared fixtures for testing location resolution,
refresh service and database operations. All fixtures follow camelCase
naming convention.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from internal.database.wrapper import DatabaseWrapper
from internal.location import (
    DictLocationStore,
    LocationResolver,
    StaticGeolocationProvider,
    StaticPermissionGate,
)
from internal.services.refresh import RecordingPresentationSink
from tests.utils import ControlledGeolocationProvider, makeSnapshot

# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def inMemoryDbPath() -> str:
    """
    Provide path for in-memory SQLite database.

    Returns:
        str: SQLite in-memory database path
    """
    return ":memory:"


@pytest.fixture
def tempDbPath() -> Generator[str, None, None]:
    """Create a temporary database file path, removed after test."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        dbPath = f.name
    yield dbPath
    Path(dbPath).unlink(missing_ok=True)


@pytest.fixture
def testDatabase(inMemoryDbPath) -> Generator[DatabaseWrapper, None, None]:
    """
    Create real in-memory database for integration tests.

    Yields:
        DatabaseWrapper: Database with initialized schema
    """
    db = DatabaseWrapper(inMemoryDbPath)
    yield db
    db.close()


# ============================================================================
# Location Fixtures
# ============================================================================


@pytest.fixture
def locationStore() -> DictLocationStore:
    """Fresh in-memory location store (nothing stored yet)."""
    return DictLocationStore()


@pytest.fixture
def grantedGate() -> StaticPermissionGate:
    """Permission gate with location access granted."""
    return StaticPermissionGate(granted=True)


@pytest.fixture
def deniedGate() -> StaticPermissionGate:
    """Permission gate with location access not granted."""
    return StaticPermissionGate(granted=False)


@pytest.fixture
def parisGeolocation() -> StaticGeolocationProvider:
    """Geolocation provider always reporting Paris coordinates."""
    return StaticGeolocationProvider(48.8566, 2.3522)


@pytest.fixture
def controlledGeolocation() -> ControlledGeolocationProvider:
    """Geolocation provider answering only when test delivers a fix."""
    return ControlledGeolocationProvider()


@pytest.fixture
def resolver(locationStore, parisGeolocation, grantedGate) -> LocationResolver:
    """Resolver over in-memory store, static Paris geolocation and granted permission."""
    return LocationResolver(locationStore, parisGeolocation, grantedGate)


# ============================================================================
# Presentation Fixtures
# ============================================================================


@pytest.fixture
def recordingSink() -> RecordingPresentationSink:
    """Presentation sink collecting all calls."""
    return RecordingPresentationSink()


@pytest.fixture
def sampleSnapshot():
    """Paris snapshot as returned for sample provider response."""
    return makeSnapshot()
