"""
Webpage PDF Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated when settings are first loaded
so misconfigured timeouts fail fast. The Browserless token is optional
here: a missing token is reported per request as a configuration error.
"""

import logging
from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class PDFSettings(BaseSettings):
    """
    Webpage PDF service configuration with validation.

    All settings can be overridden via environment variables
    (BROWSERLESS_TOKEN, PDF_TIMEOUT_MS, ...).
    """

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False, extra="ignore")

    # === Remote browser ===
    browserless_token: Optional[str] = Field(
        default=None,
        description="Access token for the remote browser service"
    )
    browserless_endpoint: str = Field(
        default="wss://production-sfo.browserless.io",
        description="WebSocket endpoint of the remote browser service"
    )

    # === Timeouts (milliseconds) ===
    connect_timeout_ms: int = Field(
        default=30000,
        ge=100,
        le=120000,
        description="Maximum time to establish the browser connection"
    )
    navigation_timeout_ms: int = Field(
        default=30000,
        ge=100,
        le=120000,
        description="Maximum time for navigation and the document readiness wait"
    )
    image_timeout_ms: int = Field(
        default=5000,
        ge=100,
        le=60000,
        description="Maximum time to wait for images to settle"
    )
    pdf_timeout_ms: int = Field(
        default=20000,
        ge=100,
        le=120000,
        description="Maximum time for PDF rendering"
    )
    total_timeout_ms: int = Field(
        default=60000,
        ge=100,
        le=300000,
        description="Ceiling for the whole request, independent of the step timeouts"
    )
    close_timeout_ms: int = Field(
        default=5000,
        ge=100,
        le=60000,
        description="Maximum time to wait for the browser to close"
    )

    # === Page ===
    viewport_width: int = Field(default=1280, ge=320, le=4096)
    viewport_height: int = Field(default=1024, ge=320, le=4096)

    # === Service ===
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins"
    )
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8002, ge=1, le=65535)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        v_upper = v.upper()
        if v_upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    @field_validator("browserless_token")
    @classmethod
    def empty_token_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank token the same as an absent one."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("browserless_endpoint")
    @classmethod
    def validate_ws_endpoint(cls, v: str) -> str:
        """Basic WebSocket URL format validation."""
        if not v.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket endpoint: {v}")
        return v

    @model_validator(mode="after")
    def validate_timeout_budget(self) -> "PDFSettings":
        """The whole-request ceiling must leave room for PDF rendering."""
        if self.total_timeout_ms < self.pdf_timeout_ms:
            raise ValueError(
                f"total_timeout_ms ({self.total_timeout_ms}) must be >= "
                f"pdf_timeout_ms ({self.pdf_timeout_ms})"
            )
        return self

    @property
    def browser_ws_endpoint(self) -> str:
        """WebSocket endpoint with the access token attached."""
        separator = "&" if "?" in self.browserless_endpoint else "?"
        return f"{self.browserless_endpoint}{separator}token={quote(self.browserless_token or '', safe='')}"

    @property
    def redacted_ws_endpoint(self) -> str:
        """WebSocket endpoint safe to write to logs."""
        separator = "&" if "?" in self.browserless_endpoint else "?"
        return f"{self.browserless_endpoint}{separator}token=*****"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration is suitable for serving requests.

        Returns list of warning/error messages.
        """
        issues = []

        if not self.browserless_token:
            prefix = "CRITICAL" if self.is_production else "WARNING"
            issues.append(
                f"{prefix}: BROWSERLESS_TOKEN not configured - /generate-pdf will return 500"
            )
        if self.is_production and not self.cors_origins:
            issues.append("WARNING: CORS_ORIGINS not configured")

        return issues


@lru_cache()
def get_settings() -> PDFSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached. Used as a FastAPI dependency,
    so tests can swap it through ``app.dependency_overrides``.
    """
    return PDFSettings()


def validate_config_on_startup() -> None:
    """
    Log the effective configuration at application startup.

    Raises ValueError if settings cannot be loaded. A missing token is
    logged but does not stop the service.
    """
    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    for issue in settings.validate_production_config():
        if issue.startswith("CRITICAL"):
            logger.error(issue)
        else:
            logger.warning(issue)

    logger.info(f"Configuration loaded: environment={settings.environment}")
    logger.info(f"  browser_endpoint={settings.redacted_ws_endpoint}")
    logger.info(
        f"  timeouts: connect={settings.connect_timeout_ms}ms "
        f"navigation={settings.navigation_timeout_ms}ms "
        f"images={settings.image_timeout_ms}ms "
        f"pdf={settings.pdf_timeout_ms}ms total={settings.total_timeout_ms}ms"
    )
    logger.info(f"  viewport={settings.viewport_width}x{settings.viewport_height}")
