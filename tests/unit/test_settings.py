"""Tests for environment settings."""

from pathlib import Path

import pytest

from src.settings import AppSettings, get_settings


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Defaults apply without environment variables."""
        for name in (
            "MATCHING_CONFIG_PATH",
            "LOG_LEVEL",
            "SOURCE_TIMEOUT_MS",
            "SOURCE_CONCURRENCY",
            "SOURCE_CACHE_TTL_MS",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = AppSettings(_env_file=None)  # type: ignore[call-arg]

        assert settings.matching_config_path is None
        assert settings.log_level == "INFO"
        assert settings.source_timeout_ms == 3000
        assert settings.source_concurrency == 5
        assert settings.source_cache_ttl_ms == 60000
        assert settings.source_timeout_seconds == 3.0

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables override defaults."""
        monkeypatch.setenv("MATCHING_CONFIG_PATH", "/etc/match/matching.yaml")
        monkeypatch.setenv("SOURCE_TIMEOUT_MS", "0")
        monkeypatch.setenv("SOURCE_CONCURRENCY", "8")

        settings = get_settings()

        assert settings.matching_config_path == Path("/etc/match/matching.yaml")
        assert settings.source_concurrency == 8
        assert settings.source_timeout_seconds is None

    def test_invalid_concurrency(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Concurrency must be at least 1."""
        monkeypatch.setenv("SOURCE_CONCURRENCY", "0")

        with pytest.raises(ValueError, match="source_concurrency|SOURCE_CONCURRENCY"):
            AppSettings()
