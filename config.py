from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PAYMENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "Payments Engine"
    app_version: str = "1.0.0"

    # Logging settings (always written to stderr, stdout carries the report)
    log_level: str = "WARNING"
    log_format: Literal["json", "text"] = "text"

    # Log the run summary once the input is exhausted
    report_summary: bool = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Environment-specific configurations
class DevelopmentSettings(Settings):
    log_level: str = "DEBUG"


class ProductionSettings(Settings):
    log_level: str = "WARNING"
    log_format: Literal["json", "text"] = "json"


class TestingSettings(Settings):
    log_level: str = "WARNING"  # Reduce noise in tests
    report_summary: bool = False


def get_settings_for_environment(env: str = "development") -> Settings:
    """Get settings for specific environment."""
    settings_map = {
        "development": DevelopmentSettings,
        "production": ProductionSettings,
        "testing": TestingSettings,
    }

    settings_class = settings_map.get(env.lower(), Settings)
    return settings_class()
