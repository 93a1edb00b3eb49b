"""Runtime settings, read from ``ORDERHUB_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    database_url: str = "sqlite:///data/orders.db"
    identity_service_url: str = "http://localhost:8081"
    inventory_service_url: str = "http://localhost:8082"
    remote_timeout_seconds: float = Field(default=10.0, gt=0)
    compensate_on_failure: bool = True
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8080

    model_config = SettingsConfigDict(
        env_prefix="ORDERHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
