from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Secrets(BaseSettings):
    """Secrets configuration, loaded from the environment or a secrets management service."""

    model_config = SettingsConfigDict(
        env_prefix="TUBELY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: str = Field(default="change-me", description="Signing secret for bearer tokens.")
    url_signing_secret: str = Field(
        default="change-me-too",
        description="HMAC key for presigned URLs issued by the local object store.",
    )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Secrets":
        return cls()


class Settings(BaseSettings):
    """Centralised runtime configuration for the Tubely API."""

    model_config = SettingsConfigDict(
        env_prefix="TUBELY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Tubely API"
    environment: str = Field(default="development", description="Deployment environment label.")
    version: str = Field(default="0.1.0", description="API version for metadata and OpenAPI.")
    log_level: str = Field(default="info")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./tubely.db",
        description="SQLAlchemy compatible DSN.",
    )

    jwt_algorithm: str = Field(default="HS256", description="Algorithm used for JWT tokens.")
    jwt_issuer: Optional[str] = None
    jwt_audience: Optional[str] = None
    jwt_ttl_seconds: int = Field(default=3600, description="Lifetime of tokens minted by the dev-token route.")

    storage_backend: Literal["local", "s3"] = Field(default="local", description="Active object store implementation.")
    s3_bucket: str = Field(default="tubely-videos", description="Bucket receiving processed uploads.")
    s3_region: str = Field(default="us-east-1")
    s3_endpoint_url: Optional[str] = Field(default=None, description="Override endpoint, e.g. for MinIO.")
    local_storage_base_path: Path = Field(
        default_factory=lambda: Path("objects"),
        description="Root directory of the local object store.",
    )
    local_storage_public_url: str = Field(
        default="http://localhost:8091/objects",
        description="Public base URL for signed local object URLs.",
    )

    assets_root: Path = Field(default_factory=lambda: Path("assets"), description="Static thumbnail directory.")
    assets_base_url: str = Field(
        default="http://localhost:8091/assets",
        description="Public URL prefix the assets directory is served under.",
    )
    staging_dir: Optional[Path] = Field(
        default=None,
        description="Directory for staged video uploads (system temp dir when unset).",
    )

    max_video_upload_bytes: int = Field(default=1 << 30, description="Hard limit for video upload bodies.")
    max_thumbnail_upload_bytes: int = Field(default=10 << 20, description="Hard limit for thumbnail upload bodies.")

    ffmpeg_binary: str = Field(default="ffmpeg")
    ffprobe_binary: str = Field(default="ffprobe")

    secrets: Secrets = Field(default_factory=Secrets, description="Holds sensitive configuration.")

    @property
    def environment_lower(self) -> str:
        return self.environment.lower()


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env", override=False)

    _ENV_ALIAS_MAP = {
        "TUBELY_ENV": "TUBELY_ENVIRONMENT",
        "TUBELY_DB_URL": "TUBELY_DATABASE_URL",
        "TUBELY_BUCKET": "TUBELY_S3_BUCKET",
    }

    for source, target in _ENV_ALIAS_MAP.items():
        value = os.getenv(source)
        if value:
            os.environ[target] = value

    settings = Settings()

    secrets = Secrets.from_settings(settings)

    if settings.environment_lower == "production" and secrets.jwt_secret == "change-me":
        raise ValueError("Production environment must have a non-default JWT secret.")

    settings.secrets = secrets
    return settings


__all__ = ["Secrets", "Settings", "get_settings"]
