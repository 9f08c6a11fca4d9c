"""
Application configuration and settings.
"""

import fnmatch
import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Accepted MIME patterns per upload slot (overridable via upload_slots.yaml)
DEFAULT_UPLOAD_SLOTS: dict[str, list[str]] = {
    "thumbnail": ["image/*"],
    "video": ["video/*"],
    "sfx": ["audio/*"],
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage backends
    storage_backend: Literal["memory", "http"] = "memory"
    object_store_url: str = "http://localhost:9100"
    record_store_url: str = "http://localhost:9200"
    store_api_token: str | None = None

    # Per-call timeouts (seconds)
    upload_timeout: float = 600.0
    store_timeout: float = 30.0

    # Publishing
    sfx_failure_policy: Literal["continue", "stop"] = "continue"
    max_sfx_files: int = 20
    publish_reset_delay: float = 1.5  # Seconds the caller shows 100% before resetting

    # Paths
    config_dir: Path = Path(__file__).resolve().parent.parent / "config"

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"  # "simple" or "structured"

    # Per-module log levels (optional overrides)
    log_level_uploader: str | None = None
    log_level_pipeline: str | None = None
    log_level_repository: str | None = None
    log_level_views: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_upload_slots(settings: Settings | None = None) -> dict[str, list[str]]:
    """
    Load accepted MIME patterns per upload slot.

    Lookup order:
    1. config_dir/upload_slots.yaml (slots found there replace the defaults)
    2. DEFAULT_UPLOAD_SLOTS

    Args:
        settings: Optional settings instance

    Returns:
        Mapping of slot name ("thumbnail", "video", "sfx") to MIME patterns
    """
    if settings is None:
        settings = get_settings()

    slots = {name: list(patterns) for name, patterns in DEFAULT_UPLOAD_SLOTS.items()}

    slots_path = settings.config_dir / "upload_slots.yaml"
    if not slots_path.exists():
        return slots

    with open(slots_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    for name, patterns in data.get("slots", {}).items():
        if isinstance(patterns, str):
            patterns = [patterns]
        slots[name] = [str(p) for p in patterns]

    logger.debug(f"Loaded upload slots from {slots_path}: {slots}")
    return slots


def content_type_matches(content_type: str | None, patterns: list[str]) -> bool:
    """
    Check a MIME type against slot patterns ("image/*", "video/mp4", ...).

    Missing content type never matches.
    """
    if not content_type:
        return False
    ct = content_type.split(";")[0].strip().lower()
    return any(fnmatch.fnmatch(ct, p.lower()) for p in patterns)
