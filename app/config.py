"""
Application configuration management
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "The Move"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Default to production-safe
    API_PREFIX: str = "/api/v1"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Document store
    MOVE_STORE_BACKEND: str = "redis"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50
    MOVES_HASH_KEY: str = "moves"
    MOVES_CHANNEL: str = "moves:changed"

    @field_validator('MOVE_STORE_BACKEND')
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        if v not in ("redis", "memory"):
            raise ValueError("MOVE_STORE_BACKEND must be 'redis' or 'memory'")
        return v

    # JWT (issued by the campus identity provider)
    JWT_SECRET_KEY: str  # Must be provided via environment
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    TOKEN_REVOCATION_ENABLED: bool = True

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    # Identity gate
    ALLOWED_EMAIL_SUFFIX: str = ".edu"

    # Move rules
    TITLE_MAX_LENGTH: int = 50
    MIN_PARTICIPANTS: int = 2
    MAX_PARTICIPANTS: int = 50
    FALLBACK_MAX_PARTICIPANTS: int = 12
    MEMBERSHIP_COMPARE_AND_SWAP: bool = False

    # Feed
    FEED_TICK_SECONDS: int = 30

    # Place lookup
    GOOGLE_MAPS_API_KEY: str = ""
    PLACES_API_URL: str = "https://maps.googleapis.com/maps/api/place"
    PLACES_CENTER_LAT: float = 42.0451
    PLACES_CENTER_LNG: float = -87.6877
    PLACES_RADIUS_METERS: int = 8000
    PLACES_COUNTRY: str = "us"
    PLACES_TIMEOUT_SECONDS: float = 5.0

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Monitoring
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    @field_validator("CORS_ORIGINS", mode="before")
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def is_testing(self) -> bool:
        return self.APP_ENV == "testing"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()
