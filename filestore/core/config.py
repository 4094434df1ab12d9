"""Configuration module: loads and caches settings from environment variables."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _detect_base_dir() -> Path:
    """Walk up the directory tree looking for the project root (the one holding `filestore`)."""
    current = Path(__file__).resolve()
    for candidate in current.parents:
        if (candidate / "filestore").is_dir():
            return candidate
    return current.parent


BASE_DIR = _detect_base_dir()


def _as_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _load_environment() -> None:
    """Load ``.env`` then ``.env.<ENVIRONMENT>``; ``DEBUG`` alone selects ``.env.development``."""
    env_file_override = os.getenv("ENV_FILE")
    if env_file_override:
        candidate = BASE_DIR / env_file_override
        if candidate.exists():
            load_dotenv(candidate, override=True, encoding="utf-8")
        return

    base_env = BASE_DIR / ".env"
    if base_env.exists():
        load_dotenv(base_env, override=False, encoding="utf-8")

    environment = os.getenv("ENVIRONMENT")
    if environment is None and _as_bool(os.getenv("DEBUG")):
        environment = "development"

    if environment:
        if environment.startswith(".env"):
            candidate_name = environment
        else:
            candidate_name = f".env.{environment}"
        candidate_path = BASE_DIR / candidate_name
        if candidate_path.exists():
            load_dotenv(candidate_path, override=True, encoding="utf-8")


_load_environment()


class Settings(BaseSettings):
    """
    Every setting filestore needs at runtime; each field can be overridden by
    the environment variable named in its alias.
    """

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")
    log_dir: str = Field(default="log", alias="LOG_DIR")
    log_file_name: str = Field(default="filestore.log", alias="LOG_FILE_NAME")
    timezone: str = Field(default="UTC", alias="TIMEZONE")

    # Adapter selection
    default_adapter: str = Field(default="MEMORY", alias="DEFAULT_ADAPTER")
    default_adapter_name: str = Field(default="default", alias="DEFAULT_ADAPTER_NAME")

    # S3
    s3_bucket_name: Optional[str] = Field(default=None, alias="S3_BUCKET_NAME")
    s3_region: str = Field(default="us-east-1", alias="S3_REGION")
    s3_endpoint_url: Optional[str] = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_path_prefix: Optional[str] = Field(default=None, alias="S3_PATH_PREFIX")
    aws_access_key_id: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")

    # Directory emulation
    list_page_size: int = Field(default=1000, ge=1, le=1000, alias="LIST_PAGE_SIZE")
    public_url_expiry_hours: int = Field(default=24, ge=1, alias="PUBLIC_URL_EXPIRY_HOURS")

    model_config = SettingsConfigDict(extra="ignore")

    def _resolve_path(self, raw: str) -> Path:
        path = Path(raw)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path

    @property
    def log_directory(self) -> Path:
        """Absolute log directory; relative values are resolved against the project root."""
        return self._resolve_path(self.log_dir)

    @property
    def log_file_path(self) -> Path:
        return self.log_directory / self.log_file_name

    @property
    def timezone_info(self) -> ZoneInfo:
        """The configured timezone, falling back to UTC when it cannot be resolved."""
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            return ZoneInfo("UTC")


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings object so the environment is parsed only once."""
    return Settings()
