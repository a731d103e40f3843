from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Vision model
    anthropic_api_key: str = Field(default="", alias="ANTHROPIC_API_KEY")
    vision_model: str = Field(default="claude-sonnet-4-20250514", alias="VISION_MODEL")
    vision_max_tokens: int = Field(default=2_000, alias="VISION_MAX_TOKENS")
    vision_timeout_seconds: float = Field(default=60.0, alias="VISION_TIMEOUT_SECONDS")

    # VIN decode
    nhtsa_base_url: str = Field(default="https://vpic.nhtsa.dot.gov/api/vehicles", alias="NHTSA_BASE_URL")
    vin_decode_timeout_seconds: float = Field(default=5.0, alias="VIN_DECODE_TIMEOUT_SECONDS")

    # Market comparables
    marketcheck_api_key: str = Field(default="", alias="MARKETCHECK_API_KEY")
    marketcheck_base_url: str = Field(default="https://api.marketcheck.com", alias="MARKETCHECK_BASE_URL")
    market_timeout_seconds: float = Field(default=10.0, alias="MARKET_TIMEOUT_SECONDS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")
