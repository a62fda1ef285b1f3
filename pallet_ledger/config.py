"""Ledger engine configuration.

Loads defaults from environment variables (prefix ``PALLET_LEDGER_``)
and an optional .env file. Settings only provide defaults: every engine
function also accepts the value as an explicit argument, which wins.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Defaults for the calculation engine."""

    stale_threshold_days: int = Field(
        default=30,
        ge=0,
        description="Days listed without a sale before an item is stale.",
    )
    standard_mileage_rate: float = Field(
        default=0.725,
        ge=0,
        description="Per-mile rate stamped on newly logged trips (2026 IRS rate).",
    )
    include_unsellable: bool = Field(
        default=False,
        description="Whether unsellable items take a share of the lot cost.",
    )
    log_level: str = Field(default="INFO", description="CLI logging level.")

    model_config = SettingsConfigDict(
        env_prefix="PALLET_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> LedgerSettings:
    """Get cached settings singleton."""
    return LedgerSettings()
