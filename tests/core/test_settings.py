"""Tests for PoolguardSettings and the settings cache."""

import pytest
from pydantic import ValidationError

from poolguard.core.config import PoolguardSettings, clear_settings_cache, get_settings
from poolguard.execution.retry import RetryPolicy


class TestDefaults:
    def test_retry_defaults(self):
        settings = PoolguardSettings()
        assert settings.retry_attempts == 5
        assert settings.retry_delay_seconds == 3.0
        assert settings.retry_policy() == RetryPolicy(attempts=5, delay=3.0)

    def test_pool_defaults(self):
        settings = PoolguardSettings()
        assert settings.pool_min_size == 1
        assert settings.pool_max_size == 10
        assert settings.database_url.startswith("postgresql://")


class TestEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("POOLGUARD_RETRY_ATTEMPTS", "10")
        monkeypatch.setenv("POOLGUARD_RETRY_DELAY_SECONDS", "0.5")
        settings = PoolguardSettings()
        assert settings.retry_policy() == RetryPolicy(attempts=10, delay=0.5)

    def test_redacted_database_url(self, monkeypatch):
        monkeypatch.setenv("POOLGUARD_DATABASE_URL", "postgresql://app:secret@db:5432/app")
        assert PoolguardSettings().redacted_database_url() == "postgresql://app:***@db:5432/app"


class TestValidation:
    def test_negative_attempts_rejected(self):
        with pytest.raises(ValidationError):
            PoolguardSettings(retry_attempts=-1)

    def test_zero_attempts_allowed(self):
        assert PoolguardSettings(retry_attempts=0).retry_policy().max_invocations == 1

    def test_max_below_min_rejected(self):
        with pytest.raises(ValidationError):
            PoolguardSettings(pool_min_size=5, pool_max_size=2)


class TestCache:
    def test_cached_instance(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("POOLGUARD_RETRY_ATTEMPTS", "2")
        assert get_settings() is first
        assert get_settings(_force_reload=True).retry_attempts == 2

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
