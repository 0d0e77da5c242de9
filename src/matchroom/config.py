"""
Configuration management for Matchroom.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for development. Sensitive values (database URLs)
should be set via environment variables or a .env file.

Usage:
    from matchroom.config import settings
    print(settings.database_url)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field can be overridden with a ``MATCHROOM_``-prefixed environment
    variable, e.g. ``MATCHROOM_DATABASE_URL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MATCHROOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ==========================================================================
    # Database Configuration
    # ==========================================================================

    database_url: str = Field(
        default="sqlite:///matchroom.db",
        description="SQLAlchemy connection URL for the document store",
    )
    db_pool_size: int = Field(
        default=5,
        description="Number of connections to keep in the pool (ignored by SQLite)",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max additional connections beyond pool_size (ignored by SQLite)",
    )

    # ==========================================================================
    # Rating Configuration
    # ==========================================================================

    default_rating: float = Field(
        default=1000.0,
        description="Starting global and venue rating for a new participant",
    )
    global_k_factor: int = Field(
        default=32,
        description="K-factor used for all global rating updates",
    )
    default_venue_k_factor: int = Field(
        default=32,
        description="K-factor for venues that do not configure their own",
    )
    placement_matches: int = Field(
        default=10,
        description="Venue matches before professional placement volatility ends",
    )

    # ==========================================================================
    # Rebuild Configuration
    # ==========================================================================

    rebuild_batch_size: int = Field(
        default=400,
        description="Writes per committed batch during a full rating rebuild",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="console",
        description="Log format: 'json' for production, 'console' for dev",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower_v = v.lower()
        if lower_v not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return lower_v

    @field_validator("rebuild_batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("rebuild_batch_size must be greater than 0")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once per process.
    """
    return Settings()


# Convenience alias for importing
settings = get_settings()
