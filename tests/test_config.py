"""Tests for environment settings."""

import pytest

from vulnmatch.core.config import (
    DEFAULT_BATCH_TIMEOUT,
    DEFAULT_DATABASE_URL,
    ConfigError,
    StoreSettings,
    database_url,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in (
        "VULNMATCH_DATABASE_URL",
        "VULNMATCH_MATCHERS",
        "VULNMATCH_BATCH_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(key, raising=False)


class TestStoreSettings:
    def test_defaults(self):
        settings = StoreSettings.from_env()
        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.matchers == ("distribution_did", "distribution_version_id")
        assert settings.batch_timeout == 30.0

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("VULNMATCH_DATABASE_URL", "postgresql+asyncpg://db/vulns")
        monkeypatch.setenv("VULNMATCH_MATCHERS", " distribution_cpe , ,distribution_arch")
        monkeypatch.setenv("VULNMATCH_BATCH_TIMEOUT_SECONDS", "12.5")

        settings = StoreSettings.from_env()
        assert settings.database_url == "postgresql+asyncpg://db/vulns"
        assert settings.matchers == ("distribution_cpe", "distribution_arch")
        assert settings.batch_timeout == 12.5

    def test_empty_matchers(self, monkeypatch):
        monkeypatch.setenv("VULNMATCH_MATCHERS", "")
        assert StoreSettings.from_env().matchers == ()

    @pytest.mark.parametrize("raw", ["soon", "0", "-3"])
    def test_invalid_timeout(self, monkeypatch, raw):
        monkeypatch.setenv("VULNMATCH_BATCH_TIMEOUT_SECONDS", raw)
        with pytest.raises(ConfigError):
            StoreSettings.from_env()

    def test_database_url(self, monkeypatch):
        assert database_url() == DEFAULT_DATABASE_URL
        monkeypatch.setenv("VULNMATCH_DATABASE_URL", "postgresql+asyncpg://other/db")
        assert database_url() == "postgresql+asyncpg://other/db"


def test_store_and_batch_share_timeout_default():
    from vulnmatch.vulnstore import batch

    assert batch.DEFAULT_BATCH_TIMEOUT is DEFAULT_BATCH_TIMEOUT
    assert StoreSettings().batch_timeout == DEFAULT_BATCH_TIMEOUT
