"""
Application Settings - Load from .env / environment + YAML polling config

Design:
- Client knobs (API URL, timeout, rate limit, burst) → environment / .env
- Polling jobs and cadence → config/providers/polling.yaml (versioned in git)

Uses Pydantic for validation and type safety
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.utils.config import load_yaml_safe

APP_NAME = "coinbase-pro-api"
APP_VERSION = "0.2.0"

COINBASE_API_URL = "https://api.pro.coinbase.com"
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_RATE_LIMIT = 3
DEFAULT_BURST_SIZE = 6
APP_USER_AGENT = f"{APP_NAME}/{APP_VERSION}"

POLLING_CONFIG_PATH = "config/providers/polling.yaml"


class Settings(BaseSettings):
    """
    Application settings

    Usage:
        from config.settings import get_settings

        settings = get_settings()
        print(settings.COINBASE_API_URL)  # From env, default api.pro.coinbase.com
        print(settings.POLL_INTERVAL_SECONDS)  # From polling.yaml
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Load polling YAML once (class-level cache)
        if not hasattr(Settings, "_yaml_loaded"):
            Settings._polling_config = load_yaml_safe(POLLING_CONFIG_PATH)
            Settings._yaml_loaded = True

    # ============================================
    # ENVIRONMENT
    # ============================================
    ENVIRONMENT: str = Field(default="local", description="Environment: local, dev, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_DIR: str = Field(default="data/logs", description="Directory for rotating error logs")

    # ============================================
    # COINBASE PRO REST API
    # ============================================
    COINBASE_API_URL: str = Field(default=COINBASE_API_URL)
    REST_API_TIMEOUT_SECONDS: int = Field(
        default=DEFAULT_REQUEST_TIMEOUT, gt=0, description="Per-request timeout (seconds)"
    )
    REST_API_RATE_LIMIT: int = Field(
        default=DEFAULT_RATE_LIMIT, ge=0, description="Requests per second, 0 disables limiting"
    )
    REST_API_BURST_SIZE: int = Field(
        default=DEFAULT_BURST_SIZE, ge=0, description="Burst capacity, 0 means equal to rate"
    )
    REST_API_USER_AGENT: str = Field(default=APP_USER_AGENT)

    # ============================================
    # POLLER
    # ============================================
    POLL_OUTPUT_DIR: str = Field(default="data/snapshots", description="JSONL snapshot root")

    @property
    def POLL_INTERVAL_SECONDS(self) -> int:
        """Seconds between polling cycles from polling.yaml"""
        return int(self._polling_config.get("settings", {}).get("interval_seconds", 60))

    @property
    def POLL_JOBS_RAW(self) -> list:
        """Raw job list from polling.yaml (validated by config.loader)"""
        return self._polling_config.get("jobs", [])


# Singleton pattern
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings (singleton)

    Example:
        >>> settings = get_settings()
        >>> print(settings.REST_API_RATE_LIMIT)
        3
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings and YAML so the next get_settings() reloads them"""
    global _settings_instance
    _settings_instance = None
    if hasattr(Settings, "_yaml_loaded"):
        delattr(Settings, "_yaml_loaded")
