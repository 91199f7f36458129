"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime knobs loaded from ORDER_SYSTEM_* environment variables.

    Business constants (service surcharges, payment ceilings and success
    rates, seed stock) are NOT configurable here - they live next to the
    code that owns them.
    """

    # Application Configuration
    app_name: str = Field(default="order-system", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log output format (json/console)")

    # Payment Simulation
    payment_latency_scale: float = Field(
        default=1.0,
        ge=0.0,
        description="Multiplier for simulated payment latency (0 disables waiting)",
    )
    random_seed: Optional[int] = Field(
        default=None, description="Seed for the payment simulation RNG (reproducible runs)"
    )

    # Inventory
    low_stock_threshold: int = Field(
        default=5, ge=0, description="Stock level below which a low-stock event is raised"
    )

    model_config = SettingsConfigDict(
        env_prefix="ORDER_SYSTEM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in ("json", "console"):
            raise ValueError("Invalid log format. Must be 'json' or 'console'")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
