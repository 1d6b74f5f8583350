"""
Application Configuration Module

Type-safe configuration for the Book Inventory API, loaded with
Pydantic Settings from environment variables and an optional .env file.

PATTERN: Settings Singleton
===========================
get_settings() is wrapped in @lru_cache, so the environment is read and
validated once. Every module that needs configuration calls get_settings()
instead of instantiating Settings directly.

Usage:
    from bookapi.config import get_settings

    settings = get_settings()
    print(settings.cache_ttl_books)

Groups:
- Application: name, debug flag, API version, bind address
- Database: SQLAlchemy URL and pool sizing
- Security: JWT signing secret and algorithm
- Caching: backend selection, Redis URL, per-scope TTLs
- Async executor: worker count and bounded backlog
- Rate limiting: slowapi limits and storage
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variable names are the upper-case field names
    (DATABASE_URL, SECRET_KEY, CACHE_BACKEND, ...). Placeholder secrets
    are rejected at startup.
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = Field(
        default="Book Inventory API",
        description="Application name displayed in docs and logs"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (SQL echo, error detail, auto-reload)"
    )
    api_version: str = Field(
        default="v1",
        description="API version for URL routing"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to"
    )
    port: int = Field(
        default=8080,
        description="Port to bind the server to"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    # -------------------------------------------------------------------------
    # Database Settings
    # -------------------------------------------------------------------------
    database_url: str = Field(
        default="sqlite:///./books.db",
        description="SQLAlchemy database URL (PostgreSQL in production)"
    )
    db_pool_size: int = Field(
        default=5,
        description="Number of permanent database connections"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Maximum additional connections during high load"
    )

    # -------------------------------------------------------------------------
    # Security Settings
    # -------------------------------------------------------------------------
    secret_key: str = Field(
        default="REPLACE_WITH_YOUR_GENERATED_SECRET_KEY",
        description="Secret used to sign and verify bearer tokens"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    access_token_expire_minutes: int = Field(
        default=1440,
        ge=1,
        description="Lifetime of tokens minted by scripts/create_token.py"
    )
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:8080",
        description="Comma-separated list of allowed CORS origins"
    )

    # -------------------------------------------------------------------------
    # Cache Settings
    # -------------------------------------------------------------------------
    cache_backend: str = Field(
        default="redis",
        description="Cache store: redis, memory or none"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for caching"
    )
    cache_ttl_books: int = Field(
        default=7200,
        ge=1,
        description="TTL in seconds for paged book listings"
    )
    cache_ttl_book: int = Field(
        default=3600,
        ge=1,
        description="TTL in seconds for single book lookups"
    )
    cache_ttl_category: int = Field(
        default=900,
        ge=1,
        description="TTL in seconds for category listings"
    )

    # -------------------------------------------------------------------------
    # Async Executor Settings
    # -------------------------------------------------------------------------
    async_max_workers: int = Field(
        default=10,
        ge=1,
        description="Worker threads for background queries"
    )
    async_queue_capacity: int = Field(
        default=100,
        ge=0,
        description="Tasks allowed to wait for a worker before rejection"
    )

    # -------------------------------------------------------------------------
    # Rate Limiting Settings
    # -------------------------------------------------------------------------
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable request rate limiting"
    )
    rate_limit_default: str = Field(
        default="100/minute",
        description="Default limit for read endpoints"
    )
    rate_limit_write: str = Field(
        default="30/minute",
        description="Limit for create, update and delete endpoints"
    )
    rate_limit_storage_uri: str = Field(
        default="memory://",
        description="slowapi storage backend (memory:// or redis://...)"
    )

    # -------------------------------------------------------------------------
    # Logging Settings
    # -------------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def api_prefix(self) -> str:
        """URL prefix shared by every versioned router."""
        return f"/api/{self.api_version}"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        """SQLite does not accept the QueuePool sizing arguments."""
        return self.database_url.startswith("sqlite")

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """
        Reject placeholder or short signing secrets.

        The application refuses to start until SECRET_KEY is set to a real
        value, so tokens are never signed with a well-known key.

        Raises:
            ValueError: If the key is a placeholder or shorter than 32 chars
        """
        placeholder_indicators = [
            "REPLACE_WITH",
            "change-me",
            "your-secret",
            "generate-with",
        ]

        for indicator in placeholder_indicators:
            if indicator.lower() in v.lower():
                raise ValueError(
                    "SECRET_KEY contains a placeholder value. "
                    "Generate a secure key with: openssl rand -hex 32"
                )

        if len(v) < 32:
            raise ValueError(
                "SECRET_KEY must be at least 32 characters long. "
                "Generate a secure key with: openssl rand -hex 32"
            )

        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_envs = {"development", "staging", "production"}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v.lower()

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        valid_backends = {"redis", "memory", "none"}
        if v.lower() not in valid_backends:
            raise ValueError(f"cache_backend must be one of {valid_backends}")
        return v.lower()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    The first call reads the environment and .env and validates every
    field; later calls return the same instance.
    """
    return Settings()
