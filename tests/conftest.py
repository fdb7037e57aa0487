"""
Pytest configuration for NoteQ tests

Every test gets its own SQLite file and a clean telemetry state. API tests
use the `client` fixture, which authenticates every request as a fixed
user and runs the rules backend under the categories policy.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from noteq.classification.backends import RulesBackend
from noteq.classification.models import TaxonomyPolicy
from noteq.infrastructure.database import init_database, reset_pool
from noteq.observability.telemetry import reset_telemetry

TEST_EMAIL = "tester@example.com"


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point the app at a fresh database file for each test."""
    db_path = tmp_path / "noteq-test.db"
    monkeypatch.setenv("NOTEQ_DB_PATH", str(db_path))
    reset_pool()
    reset_telemetry()
    init_database()
    yield db_path
    reset_pool()


@pytest.fixture
def rules_backend():
    return RulesBackend()


def login_as(app, email: str) -> None:
    """Make every following request on app come from email."""
    from noteq.api.middleware.user_auth import AuthenticatedUser, get_current_user

    async def fake_user() -> AuthenticatedUser:
        return AuthenticatedUser(email=email, name="Test User")

    app.dependency_overrides[get_current_user] = fake_user


def _make_client(policy: TaxonomyPolicy):
    from noteq.api.app import app
    from noteq.capture.service import CaptureService, get_capture_service

    service = CaptureService(backend=RulesBackend(), policy=policy)

    login_as(app, TEST_EMAIL)
    app.dependency_overrides[get_capture_service] = lambda: service
    return app


@pytest.fixture
def client():
    """TestClient authenticated as TEST_EMAIL, categories policy."""
    app = _make_client(TaxonomyPolicy.CATEGORIES)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def labels_client():
    """TestClient authenticated as TEST_EMAIL, labels policy."""
    app = _make_client(TaxonomyPolicy.LABELS)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def switch_user():
    """Call with an email to send the following requests as that user."""
    from noteq.api.app import app

    def _switch(email: str) -> None:
        login_as(app, email)

    return _switch
