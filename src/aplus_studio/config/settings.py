"""Application settings loaded from the environment and `.env`."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from aplus_studio.config.constants import Defaults, Models


class Settings(BaseSettings):
    """Runtime configuration for aplus-studio.

    Values come from environment variables (case-insensitive) or a `.env`
    file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False
    )

    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    aplus_data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".aplus-studio",
        description="Directory holding persisted guidelines and history",
    )
    aplus_log_level: str = Field(default="INFO")
    aplus_pacing_seconds: float = Field(default=Defaults.PACING_SECONDS, ge=0)
    aplus_history_limit: int = Field(default=Defaults.HISTORY_LIMIT, ge=1)
    aplus_storage_quota_bytes: int = Field(default=Defaults.STORAGE_QUOTA_BYTES, ge=0)
    aplus_research_model: str = Field(default=Models.RESEARCH)
    aplus_planning_model: str = Field(default=Models.PLANNING)
    aplus_image_model: str = Field(default=Models.IMAGE_PRIMARY)
    aplus_fallback_image_model: str = Field(default=Models.IMAGE_FALLBACK)
    aplus_image_size: str = Field(default=Defaults.IMAGE_SIZE)
    aplus_aspect_ratio: str = Field(default=Defaults.ASPECT_RATIO)

    @field_validator("aplus_log_level")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        level = v.upper().strip()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    def is_configured(self) -> bool:
        """Check whether the Gemini API key is present."""
        return bool(self.gemini_api_key.strip())

    def ensure_data_dir(self) -> Path:
        """Create the data directory if needed and return it."""
        path = self.aplus_data_dir.expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def to_dict(self) -> dict[str, Any]:
        """Serialize settings for display, masking the API key."""
        data = self.model_dump()
        data["aplus_data_dir"] = str(self.aplus_data_dir)
        if self.gemini_api_key:
            data["gemini_api_key"] = self.gemini_api_key[:4] + "..."
        return data


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear the cached settings (used by tests and after `.env` changes)."""
    get_settings.cache_clear()
