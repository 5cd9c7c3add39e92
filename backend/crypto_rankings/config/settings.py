from __future__ import annotations

from typing import List

from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CRYPTO_RANKINGS_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )
    lunarcrush_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LUNARCRUSH_API_KEY", "CRYPTO_RANKINGS_LUNARCRUSH_API_KEY"),
    )
    base_url: str = "https://lunarcrush.com/api4"
    request_timeout_seconds: float = 30.0
    metric_limit: int = 10


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CRYPTO_RANKINGS_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "CRYPTO_RANKINGS_REDIS_URL"),
    )
    refresh_queue_name: str = Field(
        default="crypto",
        validation_alias=AliasChoices("REFRESH_QUEUE_NAME", "CRYPTO_RANKINGS_REFRESH_QUEUE_NAME"),
    )
    refresh_interval_seconds: int = 300
    snapshot_key: str = "crypto:latest"
    snapshot_ttl_seconds: int = 15 * 60
    log_level: str = "INFO"
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:3001",
            "https://crypto-rankings.vercel.app",
        ]
    )

    providers: ProviderSettings = Field(default_factory=ProviderSettings)


settings = Settings()
