"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: In-memory remote mirror and mock collaborators (no keys needed)
    - STAGING / PRODUCTION: Redis remote mirror, Google Maps and the HTTP
      image generator

The ENV_MODE variable controls which services are instantiated throughout
the application. REMOTE_SYNC_ENABLED switches the remote mirror on or off
independently; with it off every client runs in local-only mode.

Usage:
    from app.core.config import get_settings

    settings = get_settings()
    if settings.remote_sync_enabled:
        # Subscribe to the shared master document
        ...

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with in-memory/mock services
        PRODUCTION: Live environment with real integrations
        STAGING: Pre-production testing with real integrations
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Sensitive values (API keys, the bootstrap password) should NEVER be
    committed to version control.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Local store
        data_directory: Directory holding the JSON key files
        state_storage_key: Key of the master snapshot
        session_storage_key: Key of the logged-in identity

        # Remote mirror
        remote_sync_enabled: Mirror the master snapshot to a remote store
        redis_url: Redis connection string (staging/production)
        remote_document_key: Logical path of the shared document
        sync_init_timeout_seconds: Upper bound on the startup sync window
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="GAB-EATS",
        description="Application display name"
    )
    app_version: str = Field(
        default="4.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8001,
        description="API server port"
    )

    # ==========================================================================
    # LOCAL STORE
    # ==========================================================================

    data_directory: str = Field(
        default="data",
        description="Directory for the local key-value files"
    )
    state_storage_key: str = Field(
        default="gab_eats_global_state",
        description="Local key holding the master snapshot"
    )
    session_storage_key: str = Field(
        default="logged_user",
        description="Local key holding the active identity"
    )
    notification_log_key: str = Field(
        default="notification_logs",
        description="Local key holding order-placed alerts"
    )
    notification_log_limit: int = Field(
        default=30,
        description="Number of alert entries kept in the local log"
    )
    storage_lock_timeout: int = Field(
        default=10,
        description="Seconds to wait for a local file lock"
    )

    # ==========================================================================
    # REMOTE MIRROR
    # ==========================================================================

    remote_sync_enabled: bool = Field(
        default=False,
        description="Mirror the master snapshot to the remote document store"
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for the remote mirror"
    )
    remote_document_key: str = Field(
        default="system/master_state",
        description="Logical path of the shared master document"
    )
    sync_init_timeout_seconds: float = Field(
        default=5.0,
        description="Seconds to wait for the first remote event at startup"
    )

    # ==========================================================================
    # BOOTSTRAP OPERATOR
    # ==========================================================================

    bootstrap_admin_identifier: str = Field(
        default="Ansar",
        description="Username of the privileged bootstrap operator"
    )
    bootstrap_admin_password: str = Field(
        default="Anudada@007",
        description="Plaintext password of the bootstrap operator"
    )

    # ==========================================================================
    # GOOGLE MAPS
    # ==========================================================================

    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps Geocoding API key"
    )

    # ==========================================================================
    # IMAGE GENERATION
    # ==========================================================================

    image_generation_url: Optional[str] = Field(
        default=None,
        description="Endpoint of the image generation service"
    )
    image_generation_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the image generation service"
    )
    image_generation_timeout: float = Field(
        default=30.0,
        description="Seconds to wait for a generated image"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def use_real_services(self) -> bool:
        """Check if real external services should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def data_path(self) -> Path:
        """Data directory as a Path."""
        return Path(self.data_directory)

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if self.remote_sync_enabled and not self.redis_url:
                missing.append("REDIS_URL")
            if not self.google_maps_api_key:
                missing.append("GOOGLE_MAPS_API_KEY")
            if not self.image_generation_url:
                missing.append("IMAGE_GENERATION_URL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once and stay
    consistent across the application lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.env_mode)
        EnvironmentMode.DEVELOPMENT
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured root logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("filelock").setLevel(logging.WARNING)

    return logging.getLogger("app")


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
