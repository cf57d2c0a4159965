"""
Tests for environment-backed engine settings.
"""

from flowroute.settings import EngineSettings, get_settings


class TestEngineSettings:
    """Test settings defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        """Strict mode is on unless configured otherwise."""
        for name in ("STRICT_MODE", "DATE_DAYFIRST", "DEFAULT_TIMEZONE", "LOG_CLAUSE_RESULTS"):
            monkeypatch.delenv(f"FLOWROUTE_{name}", raising=False)

        settings = EngineSettings(_env_file=None)

        assert settings.strict_mode is True
        assert settings.date_dayfirst is False
        assert settings.default_timezone == "UTC"
        assert settings.log_clause_results is False

    def test_environment_overrides(self, monkeypatch):
        """FLOWROUTE_ variables override the defaults."""
        monkeypatch.setenv("FLOWROUTE_STRICT_MODE", "false")
        monkeypatch.setenv("FLOWROUTE_DEFAULT_TIMEZONE", "Europe/Berlin")

        settings = EngineSettings(_env_file=None)

        assert settings.strict_mode is False
        assert settings.default_timezone == "Europe/Berlin"

    def test_get_settings_is_cached(self):
        """The process-wide settings instance is shared."""
        assert get_settings() is get_settings()
