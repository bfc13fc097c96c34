"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from pgdiff.config import Settings, get_settings
from pgdiff.filters import FilterPreset


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "PGDIFF_LOG_LEVEL",
        "PGDIFF_LOG_FORMAT",
        "PGDIFF_LOG_FILE",
        "PGDIFF_INSTANCES",
        "PGDIFF_CONNECT_TIMEOUT",
        "PGDIFF_DEFAULT_FILTER_PRESET",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.log_level == "WARNING"
        assert settings.log_format == "json"
        assert settings.log_file is None
        assert settings.instances == {}
        assert settings.connect_timeout == 10
        assert settings.default_filter_preset is FilterPreset.EXCLUDE_SYSTEM_SCHEMAS

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("PGDIFF_INSTANCES", '{"prod": "postgresql://prod/app"}')
        monkeypatch.setenv("PGDIFF_LOG_LEVEL", "debug")
        monkeypatch.setenv("PGDIFF_CONNECT_TIMEOUT", "30")
        monkeypatch.setenv("PGDIFF_DEFAULT_FILTER_PRESET", "production_safe")
        settings = Settings()
        assert settings.get_dsn("prod") == "postgresql://prod/app"
        assert settings.get_dsn("staging") is None
        assert settings.log_level == "DEBUG"
        assert settings.connect_timeout == 30
        assert settings.default_filter_preset is FilterPreset.PRODUCTION_SAFE

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_connect_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(connect_timeout=0)

    def test_default_filter_is_fresh(self):
        settings = Settings()
        first = settings.default_filter()
        first.add_exclude_table_pattern("tmp_*")
        second = settings.default_filter()
        assert "tmp_*" not in second.exclude_table_patterns
        assert not second.matches_table("information_schema", "tables")

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
