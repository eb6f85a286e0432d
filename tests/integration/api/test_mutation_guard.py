"""Integration tests for rate limiting and origin / anti-forgery checks."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from ticketcache.api.app import create_app
from ticketcache.config import Settings

AUTH = {"Authorization": "Bearer integration-token"}
ORIGIN = "http://localhost:8000"


def make_client(tmp_path: Path, **overrides) -> TestClient:
    settings = Settings(_env_file=None, db_path=str(tmp_path / "guard.db"), **overrides)
    return TestClient(create_app(settings), raise_server_exceptions=False)


@pytest.mark.integration
class TestRateLimit:
    """Mutations are limited per caller and source address."""

    def test_limit_exceeded(self, tmp_path: Path) -> None:
        with make_client(tmp_path, mutation_limit=1) as client:
            first = client.post("/api/v1/repos", json={"repo": "acme/a"}, headers=AUTH)
            second = client.post("/api/v1/repos", json={"repo": "acme/b"}, headers=AUTH)

        assert first.status_code == 201
        assert second.status_code == 429
        assert second.json()["error"] == "Rate limit exceeded"
        assert second.json()["details"] == {"reason": "rate_limited"}
        assert int(second.headers["Retry-After"]) >= 1
        assert second.headers["X-RateLimit-Remaining"] == "0"
        assert "X-RateLimit-Reset" in second.headers

    def test_callers_limited_separately(self, tmp_path: Path) -> None:
        with make_client(tmp_path, mutation_limit=1) as client:
            client.post("/api/v1/repos", json={"repo": "acme/a"}, headers=AUTH)
            other = client.post(
                "/api/v1/repos",
                json={"repo": "acme/b"},
                headers={"Authorization": "Bearer someone-else"},
            )

        assert other.status_code == 201

    def test_reads_not_limited(self, tmp_path: Path) -> None:
        with make_client(tmp_path, mutation_limit=1) as client:
            responses = [client.get("/api/v1/repos", headers=AUTH) for _ in range(3)]

        assert [r.status_code for r in responses] == [200, 200, 200]


@pytest.mark.integration
class TestOriginAndCSRF:
    """Origin and anti-forgery checks when enforcement is enabled."""

    def test_disabled_enforcement_allows_any_origin(self, tmp_path: Path) -> None:
        with make_client(tmp_path) as client:
            response = client.post(
                "/api/v1/repos",
                json={"repo": "acme/a"},
                headers={**AUTH, "Origin": "https://evil.example"},
            )

        assert response.status_code == 201

    def test_untrusted_origin(self, tmp_path: Path) -> None:
        with make_client(tmp_path, csrf_protection_enabled=True) as client:
            response = client.post(
                "/api/v1/repos",
                json={"repo": "acme/a"},
                headers={**AUTH, "Origin": "https://evil.example"},
            )

        assert response.status_code == 403
        assert response.json()["details"] == {"reason": "untrusted_origin"}

    def test_missing_token(self, tmp_path: Path) -> None:
        with make_client(tmp_path, csrf_protection_enabled=True) as client:
            response = client.post(
                "/api/v1/repos", json={"repo": "acme/a"}, headers={**AUTH, "Origin": ORIGIN}
            )

        assert response.status_code == 403
        assert response.json()["details"] == {"reason": "invalid_csrf_token"}

    def test_issued_token_accepted(self, tmp_path: Path) -> None:
        with make_client(tmp_path, csrf_protection_enabled=True) as client:
            issued = client.get("/api/v1/auth/csrf", headers=AUTH).json()["data"]
            response = client.post(
                "/api/v1/repos",
                json={"repo": "acme/a"},
                headers={**AUTH, "Origin": ORIGIN, issued["header_name"]: issued["token"]},
            )

        assert issued["cookie_name"] == "ticketcache_csrf"
        assert response.status_code == 201

    def test_referer_fallback(self, tmp_path: Path) -> None:
        with make_client(tmp_path, csrf_protection_enabled=True) as client:
            token = client.get("/api/v1/auth/csrf", headers=AUTH).json()["data"]["token"]
            response = client.post(
                "/api/v1/repos",
                json={"repo": "acme/a"},
                headers={**AUTH, "Referer": f"{ORIGIN}/board", "x-csrf-token": token},
            )

        assert response.status_code == 201

    def test_rate_limit_checked_first(self, tmp_path: Path) -> None:
        with make_client(tmp_path, csrf_protection_enabled=True, mutation_limit=1) as client:
            first = client.post("/api/v1/repos", json={"repo": "acme/a"}, headers=AUTH)
            second = client.post("/api/v1/repos", json={"repo": "acme/a"}, headers=AUTH)

        assert first.status_code == 403
        assert second.status_code == 429
