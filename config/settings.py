"""
Analytics engine settings with Pydantic
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class AnalyticsSettings(BaseSettings):
    """Analytics engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = Field(default="Study Analytics API")
    APP_VERSION: str = Field(default="1.0.0")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: Optional[str] = Field(default=None)

    # Sessions
    BOUNCE_MAX_DURATION_SECONDS: float = Field(default=30.0, description="Sessions shorter than this may bounce")
    BOUNCE_MAX_PAGE_VIEWS: int = Field(default=1, description="Sessions with at most this many page views may bounce")

    # Behavior patterns
    PATTERN_WINDOW_MINUTES: int = Field(default=24 * 60, description="Trailing window scanned after each action")
    POWER_USER_WINDOW_MINUTES: int = Field(default=60)
    POWER_USER_MIN_COMPLETIONS: int = Field(default=3)
    STRUGGLING_USER_MIN_STARTS: int = Field(default=5)

    # Metrics
    TREND_STABLE_THRESHOLD_PERCENT: float = Field(default=2.0, description="Relative change below which a trend is stable")
    METRIC_HISTORY_LIMIT: int = Field(default=100, description="Observations kept per metric name")
    ALERT_LOG_LIMIT: int = Field(default=1000, description="Emitted alerts kept for summary counts")

    # Cleanup
    DEFAULT_RETENTION_DAYS: int = Field(default=90)


# Global settings instance
_settings: Optional[AnalyticsSettings] = None


def get_settings() -> AnalyticsSettings:
    """Get analytics settings."""
    global _settings
    if _settings is None:
        _settings = AnalyticsSettings()
    return _settings


def reload_settings() -> AnalyticsSettings:
    """Reload analytics settings."""
    global _settings
    _settings = AnalyticsSettings()
    return _settings
