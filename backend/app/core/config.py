"""
Configuration settings for the Fleet Tracker Backend.

This module handles application configuration using Pydantic settings.
The settings object is built once at import time and is read-only afterwards.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Fleet Tracker API"
    api_version: str = "v1"
    node_env: str = "development"
    port: int = 3000
    log_level: str = "INFO"

    # Database Configuration
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "fleet_tracker_dev"
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 10

    # Security Configuration (JWT)
    jwt_secret: str = "your-super-secret-jwt-key-here-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expires_in: str = "24h"

    # CORS
    frontend_url: str = "http://localhost:5173"

    # Rate limiting (fixed window per client IP)
    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 100

    # Redis Configuration
    redis_url: str = "redis://localhost:6379/0"
    redis_decode_responses: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False
        frozen = True

    @property
    def sqlalchemy_database_url(self) -> str:
        """Async SQLAlchemy URL, preferring an explicit DATABASE_URL."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def is_development(self) -> bool:
        return self.node_env == "development"


settings = Settings()
