# tests/conftest.py
"""Shared test fixtures.

All fixtures are function-scoped for full test isolation: every test
gets a fresh in-memory SQLite closure table. Tests that need a file
database (CLI, settings) build one under tmp_path themselves.
"""

from collections.abc import Iterator

import pytest

from dagmanager.core.closure.database import ClosureDB
from dagmanager.core.closure.store import EdgeStore
from dagmanager.service import DagService

# Large enough that hop-bound failures only happen where a test asks for them
TEST_MAX_HOPS = 20


@pytest.fixture
def closure_db() -> Iterator[ClosureDB]:
    """Function-scoped in-memory ClosureDB."""
    db = ClosureDB.in_memory()
    yield db
    db.close()


@pytest.fixture
def store(closure_db: ClosureDB) -> EdgeStore:
    return EdgeStore(closure_db)


@pytest.fixture
def service(closure_db: ClosureDB) -> DagService:
    return DagService(closure_db, max_hops=TEST_MAX_HOPS)
