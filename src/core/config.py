"""
Application Configuration

Centralized settings management using Pydantic Settings.
Supports environment variables and .env files.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # ==========================================================================
    # App Settings
    # ==========================================================================
    APP_NAME: str = "Sticker Export Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, PROD
    DEBUG: bool = True

    # ==========================================================================
    # Input Limits
    # ==========================================================================
    MAX_IMAGE_SIZE_BYTES: int = 10485760  # 10MB

    # ==========================================================================
    # Sticker Pipeline Settings
    # ==========================================================================
    STICKER_OUTPUT_SIZE: int = 512
    STICKER_MAX_BYTES: int = 100 * 1024  # strict upper bound for a ladder rung
    STICKER_QUALITY_LADDER: List[int] = [90, 80, 70, 60, 50, 40]
    STICKER_FALLBACK_QUALITY: int = 35
    STICKER_BG_TOLERANCE: int = 28
    STICKER_DEFAULT_DIMENSION: int = 1024  # used when metadata probing fails

    # ==========================================================================
    # Pack Settings
    # ==========================================================================
    STICKER_PACK_MAX_ITEMS: int = 30
    STICKER_PACK_CONCURRENCY: int = 1  # 1 = strictly sequential
    STICKER_PACK_DEFAULT_NAME: str = "Sticker Pack"
    STICKER_PACK_DEFAULT_AUTHOR: str = "Sticker Export"

    # ==========================================================================
    # Fetch Settings
    # ==========================================================================
    STICKER_FETCH_TIMEOUT_SECONDS: float = 20.0

    # ==========================================================================
    # Logging Settings
    # ==========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT_JSON: bool = True  # JSON for production, console for development

    # ==========================================================================
    # CORS Settings
    # ==========================================================================
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:8000"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
