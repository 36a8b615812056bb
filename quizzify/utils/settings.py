"""Environment-driven settings layered over the static constants."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from quizzify.constants.ai_constants import ANALYSIS_MODEL, GENERATION_MODEL, REQUEST_TIMEOUT_SECONDS
from quizzify.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quizzify.constants.storage_constants import DEFAULT_DATA_DIR


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QUIZZIFY_", env_file=".env", extra="ignore")

    data_dir: Path = Field(default=Path(DEFAULT_DATA_DIR))
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    gemini_api_key: str | None = None
    gemini_model: str = GENERATION_MODEL
    analysis_model: str = ANALYSIS_MODEL
    ai_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS


def load_settings() -> Settings:
    return Settings()
