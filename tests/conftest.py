import pytest
import pytest_asyncio
from unittest.mock import patch
from fastapi.testclient import TestClient

from learnhub.db import init_db
from learnhub.settings import settings

TEST_JWT_SECRET = "test-secret-key-for-unit-tests-0123456789"


@pytest.fixture(autouse=True)
def test_settings(tmp_path, monkeypatch):
    """Every test gets a known signing key and its own sqlite file."""
    monkeypatch.setattr(settings, "jwt_secret", TEST_JWT_SECRET)
    monkeypatch.setattr(settings, "database_path", str(tmp_path / "test.sqlite"))
    monkeypatch.setattr(settings, "access_token_expire_minutes", 30)
    monkeypatch.setattr(settings, "refresh_token_expire_days", 7)
    monkeypatch.setattr(settings, "env", None)
    return settings


@pytest_asyncio.fixture
async def db(test_settings):
    await init_db()
    return test_settings.database_path


@pytest.fixture
def app():
    from learnhub.main import app

    return app


@pytest.fixture
def client(app):
    # The purge job is exercised directly in its own tests
    with patch("learnhub.main.scheduler"):
        with TestClient(app) as test_client:
            yield test_client
