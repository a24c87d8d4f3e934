from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"
    base_url: str = "http://localhost:8000"
    secret_key: str = "change-me"

    database_url: str = "sqlite:///./skystatus.db"
    redis_url: str = "redis://localhost:6379/0"

    storage_backend: Literal["local", "s3"] = "local"
    local_storage_path: Path = Path(".local_storage")

    s3_endpoint_url: str | None = None
    s3_region: str | None = None
    s3_bucket: str = "skystatus"
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None

    access_token_exp_minutes: int = 60 * 24

    # Statement import defaults
    fuzzy_threshold: float = 0.7
    date_tolerance_days: int = 1
    include_manual_entries: bool = False
    default_currency: str = "EUR"
    backup_key: str = "skystatus_pdf_import_backup"
    max_upload_bytes: int = 20 * 1024 * 1024


settings = Settings()
