"""Configuration management for pgdiff."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .filters import ComparisonFilter, FilterPreset


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    ``PGDIFF_INSTANCES`` is a JSON object mapping instance names to
    connection strings, e.g. ``{"prod": "postgresql://..."}``.
    """

    model_config = SettingsConfigDict(env_prefix="PGDIFF_", extra="ignore")

    log_level: str = Field(default="WARNING", description="Console log level")
    log_format: str = Field(default="json", description="Log file format: 'json' or 'console'")
    log_file: str | None = Field(default=None, description="Optional path to a log file")

    instances: dict[str, str] = Field(
        default_factory=dict, description="Instance name to connection string"
    )
    connect_timeout: int = Field(default=10, ge=1, description="Connect timeout in seconds")

    default_filter_preset: FilterPreset = Field(
        default=FilterPreset.EXCLUDE_SYSTEM_SCHEMAS,
        description="Filter preset used when a comparison does not supply one",
    )

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log file format."""
        if v not in ("json", "console"):
            raise ValueError("Log format must be 'json' or 'console'")
        return v

    def get_dsn(self, instance: str) -> str | None:
        """Return the connection string configured for an instance."""
        return self.instances.get(instance)

    def default_filter(self) -> ComparisonFilter:
        """Build a fresh filter from the configured preset."""
        return ComparisonFilter.from_preset(self.default_filter_preset)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
