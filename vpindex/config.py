"""Configuration management with Pydantic settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

VantagePolicy = Literal["first", "random"]


class Settings(BaseSettings):
    """Index construction and query settings.

    Precedence: constructor argument > environment variable > .env file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="VPINDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Tree layout
    leaf_size: int = Field(
        default=1,
        ge=1,
        description="Largest slice stored as a linear leaf run instead of being partitioned",
    )

    vantage_policy: VantagePolicy = Field(
        default="first",
        description="Vantage point selection: first item of the slice, or seeded random",
    )

    seed: int = Field(
        default=0,
        description="Seed for the random vantage policy (builds are reproducible per seed)",
    )

    # Query behaviour
    auto_rebuild: bool = Field(
        default=False,
        description="Rebuild a stale index implicitly before answering a query",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
