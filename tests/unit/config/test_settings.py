"""Unit tests for Settings."""

import os
from unittest.mock import patch

import pytest

from ticketcache.config import Settings, get_settings


@pytest.mark.unit
class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.db_path == "ticketcache.db"
        assert settings.csrf_protection_enabled is False
        assert settings.mutation_limit == 30
        assert settings.mutation_window_ms == 60_000
        assert settings.forge_token is None
        assert settings.sync_stale_after_ms == 6 * 60 * 60 * 1000
        assert settings.attention_stale_after_ms == 24 * 60 * 60 * 1000

    def test_environment_overrides(self) -> None:
        env = {
            "TICKETCACHE_CSRF_PROTECTION_ENABLED": "true",
            "TICKETCACHE_ATTENTION_STALE_AFTER_HOURS": "2",
            "TICKETCACHE_FORGE_TOKEN": "ghp_secret",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.csrf_protection_enabled is True
        assert settings.attention_stale_after_ms == 2 * 60 * 60 * 1000
        assert settings.forge_token.get_secret_value() == "ghp_secret"
        assert "ghp_secret" not in repr(settings)

    def test_rejects_non_positive_thresholds(self) -> None:
        with pytest.raises(ValueError):
            Settings(_env_file=None, mutation_limit=0)

    def test_get_settings_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
