"""Application settings using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from semtree.domain.entities import VectorizationConfig
from semtree.infrastructure.summarization.base import DEFAULT_PROMPT as DEFAULT_SUMMARIZE_PROMPT
from semtree.infrastructure.summarization.base import DEFAULT_TRUNCATE_MESSAGE


class Settings(BaseSettings):
    """Application settings loaded from environment variables (``SEMTREE_*``)."""

    model_config = SettingsConfigDict(
        env_prefix="SEMTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    log_level: str = "INFO"
    log_json: bool = False

    # Providers
    provider: str = "ollama"  # ollama, openai, custom, local, sentence-transformers
    embedder_model: str | None = None
    llm_model: str | None = None
    local_url: str = "http://localhost:11434"
    base_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0, le=600)

    # Vectorization
    enable_origin: bool = True
    enable_summarize: bool = False
    enable_vs_origin: bool = True
    enable_vs_summarize: bool = False
    summarize_prompt: str = DEFAULT_SUMMARIZE_PROMPT
    max_text_length: int = Field(default=8000, ge=100)
    truncate_message: str = DEFAULT_TRUNCATE_MESSAGE
    exclude_patterns: list[str] = Field(default_factory=list)
    max_workers: int = Field(default=4, ge=1, le=64)

    # Storage
    store: str = "jsonl"  # jsonl, memory
    store_path: Path = Path(".semtree")

    # Search
    search_default_limit: int = Field(default=5, ge=1, le=1000)

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8765

    @field_validator("provider", "store")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def summarization_enabled(self) -> bool:
        return self.enable_summarize or self.enable_vs_summarize

    def vectorization_config(self) -> VectorizationConfig:
        """Build the value object the vectorizers consume."""
        return VectorizationConfig(
            enable_origin=self.enable_origin,
            enable_summarize=self.enable_summarize,
            enable_vs_origin=self.enable_vs_origin,
            enable_vs_summarize=self.enable_vs_summarize,
            summarize_prompt=self.summarize_prompt,
            exclude_patterns=list(self.exclude_patterns),
            max_workers=self.max_workers,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
