"""
tests/integration/conftest.py — Fixtures for all integration tests.

Design:
  - The app is created once per session using create_app("testing").
  - TestingConfig points SQLAlchemy at in-memory SQLite; the factory's
    db.create_all() creates the snapshot table on that single connection.
  - Between tests, every snapshot row is deleted so tests are isolated.

Request helpers shared by the test modules (make_group, add_people,
make_expense, ...) live in api_helpers.py as plain functions, so they can
be called with arbitrary arguments without fixture parameterization.
"""

from __future__ import annotations

import pytest

from groupsplit.app import create_app
from groupsplit.app.extensions import db as _db
from groupsplit.app.models.snapshot import GroupSnapshot


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.
    Tables are dropped at teardown.
    """
    flask_app = create_app("testing")

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_store(app):
    """
    Deletes every stored snapshot after each test.

    autouse=True means this runs after EVERY test in the integration suite
    without needing to be declared in each test function.
    """
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test
        _db.session.query(GroupSnapshot).delete()
        _db.session.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()
