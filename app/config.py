"""Process settings for pingz via pydantic-settings.

These are the knobs that belong to the process rather than to the monitored
hosts: environment, log verbosity, the default config file location, the
per-check timeout, and the address the metrics server binds. Load them from
``PINGZ_``-prefixed environment variables and/or a `.env` file. The host list,
port and polling frequency live in the YAML config file instead (see
`app.pingz.core.loader`).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide configuration settings.

    Attributes:
        PROJECT_NAME: Display name for the application.
        VERSION: Semantic version string.
        ENVIRONMENT: Deployment environment identifier; selects the log renderer.
        LOG_LEVEL: Minimum logging verbosity level.
        LOGGING_NOISY_MODULES: Third-party loggers capped at WARNING.
        CONFIG_PATH: Default YAML config path when ``--config`` is not given.
        REQUEST_TIMEOUT: Per-check HTTP timeout in seconds.
        METRICS_HOST: Interface the metrics server binds to.
    """

    model_config = SettingsConfigDict(
        env_prefix="PINGZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ==========================================================================
    # PROJECT METADATA
    # ==========================================================================
    PROJECT_NAME: str = "pingz"
    VERSION: str = "0.1.0"

    # ==========================================================================
    # ENVIRONMENT & LOGGING
    # ==========================================================================
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    LOG_LEVEL: Literal["debug", "info", "warning", "error", "critical"] = "info"
    LOGGING_NOISY_MODULES: list[str] = [
        "uvicorn.access",
        "httpx",
        "httpcore",
        "asyncio",
    ]

    # ==========================================================================
    # POLLING
    # ==========================================================================
    CONFIG_PATH: str = "./config.yaml"
    REQUEST_TIMEOUT: float = Field(default=10.0, gt=0)

    # ==========================================================================
    # METRICS SERVER
    # ==========================================================================
    METRICS_HOST: str = "0.0.0.0"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept upper-case level names such as ``WARNING``."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


# ==============================================================================
# DEPENDENCY INJECTION
# ==============================================================================


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton instance of the process settings."""
    return Settings()
