"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised project settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    image_model: str = "gpt-image-1"
    image_size: str = "1024x1024"
    image_quality: str = ""
    request_timeout: float = 120.0

    gallery_database_url: str = "sqlite+aiosqlite:///./data/gallery.db"


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        image_model=os.getenv("IMAGE_MODEL", "gpt-image-1"),
        image_size=os.getenv("IMAGE_SIZE", "1024x1024"),
        image_quality=os.getenv("IMAGE_QUALITY", ""),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "120")),
        gallery_database_url=os.getenv(
            "GALLERY_DATABASE_URL",
            "sqlite+aiosqlite:///./data/gallery.db",
        ),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
