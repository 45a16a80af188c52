from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = APP_DIR.parent
DOWNLOADS_DIR = PROJECT_ROOT / "downloads"
STATIC_DIR = PROJECT_ROOT / "public"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="APP_", env_file=".env", extra="ignore", populate_by_name=True)

    app_name: str = "OGMP3 Server"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, validation_alias=AliasChoices("APP_PORT", "PORT"))
    log_level: str = "INFO"

    downloads_dir: Path = Field(default_factory=lambda: DOWNLOADS_DIR)
    static_dir: Path = Field(default_factory=lambda: STATIC_DIR)

    ytdlp_command: List[str] = Field(default_factory=lambda: ["yt-dlp"])
    audio_format: str = "mp3"
    audio_quality: str = "0"
    allowed_hosts: List[str] = Field(default_factory=lambda: ["youtube.com", "youtu.be"])
    conversion_timeout: float = 60 * 15
    info_timeout: float = 60

    # Retention (in seconds)
    cleanup_interval: float = 60 * 5  # sweep every 5 minutes
    max_artifact_age: float = 60 * 10  # remove artifacts older than 10 minutes
    post_download_delay: float = 5  # remove an artifact 5 seconds after its download
    shutdown_timeout: int = 10  # wait for open requests before the shutdown purge

    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_methods: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
