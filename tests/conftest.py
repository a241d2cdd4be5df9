from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from signalist.config import settings
from signalist.database import close_db


@pytest.fixture(autouse=True)
def use_test_db(tmp_path):
    # Route every test to its own temporary DuckDB file
    settings.DB_PATH = tmp_path / "test_signalist.duckdb"
    close_db()
    yield
    close_db()


@pytest.fixture()
def client():
    from signalist.main import app

    # Not used as a context manager, so startup hooks (scheduler) don't run
    return TestClient(app)


@pytest.fixture()
def dispatch_mock():
    """Swallow events queued by the routes (welcome email, daily news)."""
    from signalist import main

    with patch.object(main._scheduler, "dispatch_event", new=AsyncMock()) as m:
        yield m


def sign_up(client: TestClient, email: str = "ada@example.com", name: str = "Ada") -> dict:
    resp = client.post(
        "/api/auth/sign-up",
        json={
            "email": email,
            "password": "correct-horse",
            "name": name,
            "investmentGoals": "Growth",
            "riskTolerance": "Medium",
            "preferredIndustry": "Technology",
        },
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


@pytest.fixture()
def signed_in(client, dispatch_mock):
    """A TestClient carrying a live session cookie, plus the user dict."""
    user = sign_up(client)
    return client, user
