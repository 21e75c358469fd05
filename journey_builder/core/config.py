"""
Application configuration settings.
"""

import re
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_HH_MM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    """Application settings."""

    # Application Configuration
    APP_NAME: str = "Journey Builder"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # API Configuration
    API_V1_STR: str = "/api/v1"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["GET", "POST", "OPTIONS"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    # Sequence persistence API
    SEQUENCES_API_URL: str = Field(
        default="http://localhost:3001/api",
        description="Base URL of the sequence persistence API"
    )
    SEQUENCES_API_KEY: Optional[str] = Field(
        default=None,
        description="Bearer token for the sequence persistence API"
    )
    SEQUENCES_API_TIMEOUT: float = 30.0

    # AI timing suggestions
    AI_TIMING_ENABLED: bool = True
    AI_TIMING_API_URL: Optional[str] = Field(
        default=None,
        description="Endpoint of the AI timing analysis service"
    )
    AI_TIMING_TIMEOUT: float = 10.0

    # Journey defaults
    DEFAULT_QUIET_HOURS_START: str = "22:00"
    DEFAULT_QUIET_HOURS_END: str = "08:00"

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # "json" | "text"
    LOG_FILE: Optional[str] = None

    # Monitoring Configuration
    ENABLE_METRICS: bool = True

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        valid_formats = ['json', 'text']
        if v.lower() not in valid_formats:
            raise ValueError(f'LOG_FORMAT must be one of: {valid_formats}')
        return v.lower()

    @field_validator('DEFAULT_QUIET_HOURS_START', 'DEFAULT_QUIET_HOURS_END')
    @classmethod
    def validate_quiet_hours(cls, v):
        """Quiet hours must be HH:MM (24h)."""
        if not _HH_MM.match(v):
            raise ValueError(f'Quiet hours must be in HH:MM format, got {v!r}')
        return v

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @property
    def sequences_api_config(self) -> dict:
        """Get sequence persistence API configuration dictionary."""
        return {
            "base_url": self.SEQUENCES_API_URL,
            "api_key": self.SEQUENCES_API_KEY,
            "timeout": self.SEQUENCES_API_TIMEOUT,
        }

    @property
    def ai_timing_config(self) -> dict:
        """Get AI timing service configuration dictionary."""
        return {
            "url": self.AI_TIMING_API_URL,
            "enabled": self.AI_TIMING_ENABLED,
            "timeout": self.AI_TIMING_TIMEOUT,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
