# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from travelfx.models.enums import ConnectionType


class Settings(BaseSettings):
    """Runtime settings, read from ``TRAVELFX_*`` variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="TRAVELFX_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite:///./travelfx.db",
        description="SQLAlchemy URL of the local store",
    )
    base_currency: str = Field(
        default="CHF",
        min_length=3,
        max_length=3,
        description="Pivot currency all conversions go through",
    )
    provider_timeout_seconds: float = Field(default=5.0, gt=0)
    probe_timeout_seconds: float = Field(default=3.0, gt=0)
    probe_url: str = "https://www.google.com/generate_204"
    connection_type: ConnectionType = ConnectionType.WIFI
    strict_currencies: bool = Field(
        default=False,
        description="Raise on unknown currencies instead of using rate 1.0",
    )
    log_level: str = "INFO"

    @field_validator("base_currency")
    @classmethod
    def upper_case_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator("log_level")
    @classmethod
    def upper_case_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
