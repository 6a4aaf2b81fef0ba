"""Configuration management for Mercado"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def find_env_file() -> Path:
    """Find the .env file in current directory or user's home directory"""
    current_dir_env = Path.cwd() / ".env"
    if current_dir_env.exists():
        return current_dir_env

    home_env = Path.home() / ".mercado.env"
    if home_env.exists():
        return home_env

    # Environment variables only if neither exists
    return current_dir_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=find_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LaLiga Fantasy access
    laliga_token: str | None = Field(
        default=None,
        description="Bearer token for the LaLiga Fantasy API",
    )
    api_base_url: str = Field(
        default="https://api-fantasy.llt-services.com/api",
        description="Base URL of the LaLiga Fantasy API",
    )
    api_language: str = Field(default="es", description="Value sent as the x-lang query param")
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    # Rate limiting (sequential requests with a fixed pause)
    request_delay_seconds: float = Field(
        default=0.5,
        description="Pause between per-player requests",
    )
    team_request_delay_seconds: float = Field(
        default=0.2,
        description="Pause between per-team roster requests",
    )

    # Analysis
    max_market_players: int = Field(
        default=500,
        description="Maximum number of market listings to analyze",
    )
    short_trend_days: int = Field(default=5, description="Short trend window (data points)")
    long_trend_days: int = Field(default=10, description="Long trend window (data points)")

    # Ambient
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma separated list of allowed CORS origins",
    )


def get_settings() -> Settings:
    """Get application settings"""
    return Settings()
