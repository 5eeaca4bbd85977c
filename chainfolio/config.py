"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./chainfolio.db"

    # Security
    secret_key: str = "change-this-in-production-minimum-32-characters-long"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # Registry
    registry_authority: str = "0x0000000000000000000000000000000000000000"

    # Chain data sources
    rpc_url_sepolia: str = "https://rpc.sepolia.org"
    rpc_url_base_sepolia: str = "https://sepolia.base.org"
    explorer_api_sepolia: Optional[str] = None
    explorer_api_base_sepolia: Optional[str] = None
    explorer_api_key: str = ""
    mainnet_network: str = "sepolia"

    # Scoring
    source_timeout_seconds: float = 8.0
    scoring_timeout_seconds: float = 20.0  # 0 disables the overall deadline
    score_cache_ttl_seconds: int = 300

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    slow_request_ms: int = 1000  # requests slower than this log a warning

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Chainfolio"
    version: str = "1.0.0"

    # Rate limiting
    rate_limit_score_per_minute: int = 10   # per identity for score computation
    rate_limit_api_per_minute: int = 100    # per identity or IP for general API
    rate_limit_enabled: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
