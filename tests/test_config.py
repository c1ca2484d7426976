import pytest

import config
from config import Settings, get_settings, get_settings_for_environment


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch, tmp_path):
    """Clear cached settings and keep a stray .env out of the way."""
    monkeypatch.chdir(tmp_path)
    for var in ("PAYMENTS_LOG_LEVEL", "PAYMENTS_LOG_FORMAT", "PAYMENTS_REPORT_SUMMARY"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.app_name == "Payments Engine"
        assert settings.log_level == "WARNING"
        assert settings.log_format == "text"
        assert settings.report_summary is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("PAYMENTS_LOG_FORMAT", "json")
        monkeypatch.setenv("PAYMENTS_REPORT_SUMMARY", "false")

        settings = Settings()

        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"
        assert settings.report_summary is False

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("PAYMENTS_LOG_FORMAT=json\n")

        assert Settings().log_format == "json"

    def test_invalid_log_format_rejected(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_FORMAT", "xml")

        with pytest.raises(ValueError):
            Settings()

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestEnvironmentSettings:
    @pytest.mark.parametrize("env, expected", [
        ("development", config.DevelopmentSettings),
        ("Production", config.ProductionSettings),
        ("testing", config.TestingSettings),
        ("staging", Settings),
    ])
    def test_settings_for_environment(self, env, expected):
        assert type(get_settings_for_environment(env)) is expected

    def test_presets(self):
        assert config.DevelopmentSettings().log_level == "DEBUG"
        assert config.ProductionSettings().log_format == "json"
        assert config.TestingSettings().report_summary is False
