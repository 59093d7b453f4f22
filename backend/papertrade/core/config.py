"""
Application configuration management
Loads environment variables and provides type-safe configuration access
Supports both local .env files and plain environment variables (Docker, CI)
"""

from decimal import Decimal
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


def get_env_file() -> str | None:
    """
    Determine which .env file to use (if any).
    Priority: .env.production > .env > None (environment variables only)
    """
    if Path(".env.production").exists():
        return ".env.production"
    elif Path(".env").exists():
        return ".env"
    return None


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Everything has a development-friendly default except the JWT secret,
    which must be supplied before any token is issued.
    """

    model_config = SettingsConfigDict(
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./papertrade.db"

    # Redis (optional: price ticks are cached and relayed when available)
    REDIS_URL: str | None = None

    # JWT Configuration - Support both JWT_SECRET and JWT_SECRET_KEY
    JWT_SECRET: str | None = None
    JWT_SECRET_KEY: str | None = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    @property
    def jwt_secret(self) -> str:
        """Get JWT secret from either JWT_SECRET or JWT_SECRET_KEY"""
        secret = self.JWT_SECRET or self.JWT_SECRET_KEY
        if not secret:
            raise ValueError("Either JWT_SECRET or JWT_SECRET_KEY must be set")
        return secret

    # Application URLs
    FRONTEND_URL: str = "http://localhost:5173"

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "production"
    DEBUG: bool = False

    # CORS
    @property
    def CORS_ORIGINS(self) -> list[str]:
        """Get allowed CORS origins"""
        origins = [self.FRONTEND_URL]
        if self.ENVIRONMENT == "development":
            origins.extend([
                "http://localhost:3000",
                "http://localhost:8000"
            ])
        return origins

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_SIGNUP: str = "5/hour"
    RATE_LIMIT_LOGIN: str = "10/hour"
    RATE_LIMIT_ORDERS: str = "30/minute"

    # Simulation
    STARTING_CASH: Decimal = Decimal("100000")
    MARKET_SYMBOLS: list[str] = ["AAPL", "GOOGL", "MSFT", "TSLA", "AMZN", "NVDA", "META"]
    PRICE_TICK_SECONDS: float = 2.0
    PRICE_SEED: int | None = None
    PRICE_FEED_AUTOSTART: bool = True

    # Trade accounting
    TRACK_REALIZED_PROFIT: bool = True
    RECENT_TRADES_LIMIT: int = 10


# Global settings instance
settings = Settings()
