"""Environment-driven settings for the roadmap engine."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    similarity_threshold: float = Field(0.3, alias="ROADMAP_SIMILARITY_THRESHOLD", ge=0.0, le=1.0)
    candidate_count: int = Field(30, alias="ROADMAP_CANDIDATE_COUNT", ge=1)
    min_candidates: int = Field(5, alias="ROADMAP_MIN_CANDIDATES", ge=1)
    advanced_synthesis_threshold: int = Field(80, alias="ROADMAP_ADVANCED_THRESHOLD", ge=1)
    retry_max_retries: int = Field(3, alias="ROADMAP_RETRY_MAX_RETRIES", ge=0)
    retry_initial_delay_seconds: float = Field(1.0, alias="ROADMAP_RETRY_INITIAL_DELAY", ge=0.0)
    retry_max_delay_seconds: float = Field(8.0, alias="ROADMAP_RETRY_MAX_DELAY", ge=0.0)
    retry_jitter_seconds: float = Field(0.25, alias="ROADMAP_RETRY_JITTER", ge=0.0)
    embedding_cache_max_items: int = Field(100, alias="ROADMAP_EMBEDDING_CACHE_MAX_ITEMS", ge=1)
    embedding_cache_ttl_seconds: float = Field(60 * 60 * 24, alias="ROADMAP_EMBEDDING_CACHE_TTL", gt=0)
    embedding_cache_max_bytes: Optional[int] = Field(10_000_000, alias="ROADMAP_EMBEDDING_CACHE_MAX_BYTES")
    search_cache_max_items: int = Field(50, alias="ROADMAP_SEARCH_CACHE_MAX_ITEMS", ge=1)
    search_cache_ttl_seconds: float = Field(60 * 60, alias="ROADMAP_SEARCH_CACHE_TTL", gt=0)
    search_cache_max_bytes: Optional[int] = Field(20_000_000, alias="ROADMAP_SEARCH_CACHE_MAX_BYTES")
    validate_output: bool = Field(True, alias="ROADMAP_VALIDATE_OUTPUT")
    embedding_model: str = Field("text-embedding-3-small", alias="ROADMAP_EMBEDDING_MODEL")
    openai_api_key: Optional[str] = Field(None, alias="OPENAI_API_KEY")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid roadmap engine configuration: {exc}") from exc


__all__ = ["Settings", "get_settings"]
