"""Centralised settings for the cOS kernel, loaded from env / .env."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CosSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- generative backend (empty model = pattern-only engine) ---
    llm_model: str = ""
    llm_api_base: Optional[str] = None
    llm_max_tokens: int = 1024
    llm_temperature: float = 0.8

    # --- conversation ---
    max_history: int = Field(ge=0, default=20)
    strict_registry: bool = False

    # --- file handler sandbox ---
    files_root: Path = Field(default_factory=Path.home)
    default_delete_days: int = Field(ge=0, default=30)


@lru_cache
def get_settings() -> CosSettings:
    return CosSettings()
