"""Shared fixtures for API integration tests."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from ticketcache.api.app import create_app
from ticketcache.config import Settings

AUTH = {"Authorization": "Bearer integration-token"}
REPO = "acme/widgets"

FIRST = "01HQ3K5M0AAAAAAAAAAAAAAAAA"
SECOND = "01HQ3K5M0BBBBBBBBBBBBBBBBB"
THIRD = "01HQ9ZZZ0CCCCCCCCCCCCCCCCC"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary database."""
    return Settings(_env_file=None, db_path=str(tmp_path / "ticketcache.db"))


@pytest.fixture
def client(settings: Settings):
    """Create a test client; the lifespan opens the store, guard and forge client."""
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def seeded(client: TestClient) -> TestClient:
    """Client with one tracked repository and a synced snapshot."""
    response = client.post("/api/v1/repos", json={"repo": REPO}, headers=AUTH)
    assert response.status_code == 201
    response = client.put(
        f"/api/v1/repos/{REPO}/snapshot",
        json={
            "sync": {"sync_status": "idle"},
            "tickets": [
                {"id": FIRST, "title": "Fix login redirect", "state": "blocked", "priority": "p2"},
                {"id": SECOND, "title": "Cache warmup", "state": "ready", "priority": "p1"},
                {"id": THIRD, "title": "Speed up search", "state": "in_progress", "priority": "p0"},
            ],
            "prs": [
                {
                    "ticket_key": THIRD,
                    "pr_number": 7,
                    "url": f"https://github.com/{REPO}/pull/7",
                    "checks_state": "failure",
                    "mergeable_state": "clean",
                }
            ],
        },
        headers=AUTH,
    )
    assert response.status_code == 200
    return client
