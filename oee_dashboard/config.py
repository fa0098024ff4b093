"""
OEE Dashboard - Configuration Management

This module handles all configuration settings for the OEE Dashboard API.
It uses Pydantic Settings for environment variable management and validation.
"""

import os
from typing import List
from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application Settings
    APP_NAME: str = "OEE Dashboard API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=5000)
    LOG_LEVEL: str = Field(default="INFO")

    # CORS Settings
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"]
    )

    # Database Settings
    DATABASE_URL: str = Field(default="postgresql+asyncpg://localhost:5432/iot_data")
    DATABASE_POOL_SIZE: int = Field(default=10)
    DATABASE_MAX_OVERFLOW: int = Field(default=20)
    DATABASE_ECHO: bool = Field(default=False)

    # OEE Settings
    DEFAULT_START_DATE: str = Field(default="2023-01-01T00:00:00")
    DEFAULT_TIMELINE_INTERVAL: str = Field(default="daily")
    DEFAULT_EFFICIENCY_PERCENT: float = Field(default=80.0, ge=0, le=100)
    MAX_TIMELINE_PERIODS: int = Field(default=10000, ge=1)

    # Monitoring Settings
    ENABLE_METRICS: bool = Field(default=True)

    @validator("ALLOWED_ORIGINS", pre=True)
    def parse_allowed_origins(cls, v):
        """Parse comma-separated origins string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @validator("ENVIRONMENT")
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "test", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v

    @validator("LOG_LEVEL")
    def validate_log_level(cls, v):
        """Validate log level setting."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @validator("DEFAULT_TIMELINE_INTERVAL")
    def validate_timeline_interval(cls, v):
        """Validate default timeline interval."""
        allowed_intervals = ["hourly", "daily", "weekly"]
        if v not in allowed_intervals:
            raise ValueError(f"DEFAULT_TIMELINE_INTERVAL must be one of {allowed_intervals}")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Environment-specific configurations
class DevelopmentSettings(Settings):
    """Development environment settings."""
    DEBUG: bool = True
    DATABASE_ECHO: bool = True
    LOG_LEVEL: str = "DEBUG"


class TestSettings(Settings):
    """Test environment settings."""
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"
    ENABLE_METRICS: bool = False


class StagingSettings(Settings):
    """Staging environment settings."""
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"


class ProductionSettings(Settings):
    """Production environment settings."""
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"
    DATABASE_ECHO: bool = False


def get_settings() -> Settings:
    """Get settings based on environment."""
    env = os.getenv("ENVIRONMENT", "development")

    if env == "development":
        return DevelopmentSettings()
    elif env == "test":
        return TestSettings()
    elif env == "staging":
        return StagingSettings()
    elif env == "production":
        return ProductionSettings()
    else:
        return Settings()


# Export the appropriate settings instance
settings = get_settings()
