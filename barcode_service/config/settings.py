"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

This module implements the Singleton pattern to ensure a single global
configuration instance throughout the application lifecycle.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Computed properties for derived values

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Camera Permission:
-----------------
A server has no system permission dialog, so the camera authorization state
is configured through CAMERA_PERMISSION. When it is "not_determined" the
first scan asks for access and CAMERA_GRANT_ON_REQUEST decides the answer.

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        cors_origins: Allowed CORS origins (JSON array string)
        camera_index: OpenCV index of the default video device
        camera_width: Requested capture width (None keeps device default)
        camera_height: Requested capture height (None keeps device default)
        camera_permission: Camera authorization state
        camera_grant_on_request: Answer given when access is requested
        preview_enabled: Show the live preview window with the Done control
        preview_window_name: Title of the preview window
        scan_timeout_seconds: Give up a scan after this long (0 = never)

    Example:
        >>> settings = Settings()
        >>> print(settings.app_name)
        'Barcode Scanner Service'
        >>> print(settings.camera_permission)
        'authorized'
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Barcode Scanner Service",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="127.0.0.1",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # CAMERA SETTINGS
    # =========================================================================
    camera_index: int = Field(
        default=0,
        ge=0,
        description="OpenCV index of the default video device"
    )

    camera_width: Optional[int] = Field(
        default=None,
        ge=160,
        le=7680,
        description="Requested capture width in pixels"
    )

    camera_height: Optional[int] = Field(
        default=None,
        ge=120,
        le=4320,
        description="Requested capture height in pixels"
    )

    camera_permission: str = Field(
        default="authorized",
        description="authorized, denied, restricted or not_determined"
    )

    camera_grant_on_request: bool = Field(
        default=True,
        description="Grant access when permission is not yet determined"
    )

    # =========================================================================
    # SCAN SETTINGS
    # =========================================================================
    preview_enabled: bool = Field(
        default=True,
        description="Show the live preview window with the Done control"
    )

    preview_window_name: str = Field(
        default="Barcode Scanner",
        min_length=1,
        description="Title of the preview window"
    )

    scan_timeout_seconds: float = Field(
        default=0,
        ge=0,
        le=3600,
        description="Give up a scan after this many seconds (0 = never)"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Args:
            value: Raw environment value

        Returns:
            Lowercase normalized environment name
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("camera_permission")
    @classmethod
    def validate_camera_permission(cls, value: str) -> str:
        """
        Validate the configured camera authorization state.

        Args:
            value: Raw permission value (dashes and spaces allowed)

        Returns:
            Normalized permission name

        Raises:
            ValueError: If the state is not recognized
        """
        supported = {"authorized", "denied", "restricted", "not_determined"}
        normalized = value.lower().strip().replace("-", "_").replace(" ", "_")

        if normalized not in supported:
            raise ValueError(
                f"Unsupported camera permission: {value}. "
                f"Supported: {', '.join(sorted(supported))}"
            )

        return normalized

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def scan_timeout(self) -> Optional[float]:
        """Scan timeout in seconds, or None when scans wait indefinitely."""
        return self.scan_timeout_seconds or None

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"camera_index={self.camera_index}, "
            f"camera_permission={self.camera_permission!r})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Returns:
        Global Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
