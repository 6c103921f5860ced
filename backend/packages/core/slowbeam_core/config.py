"""
Application configuration.

This module provides settings for the translation pipeline, the Notion
content source, and the key-value store, loaded from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find .env file in project root
_env_file = Path(__file__).parent.parent.parent.parent.parent / ".env"


class Settings(BaseSettings):
    """
    Slowbeam configuration from environment variables.

    Variable names match the deployment environment of the blog, so no
    prefix is applied.
    """

    model_config = SettingsConfigDict(
        env_file=str(_env_file) if _env_file.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000"  # Comma-separated
    site_lang: str = "ko-KR"  # e.g. "ko-KR", "en-US"

    # Translation provider
    openai_api_key: str = ""
    openai_model: str = ""  # Empty means provider default
    openai_base_url: str = ""

    # Translation pipeline
    ai_translations_disabled: bool = False
    ai_translations_dir: str = "data/ai-translations"
    ai_translations_legacy_dirs: str = ""  # Comma-separated, read-only
    ai_translations_store: Literal["local", "notion", "hybrid"] = "local"
    ai_translation_batch_size: int = Field(default=60, gt=0, le=500)
    ai_translation_timeout: float = Field(default=60.0, gt=0)
    ai_translation_include_untagged: bool = True

    # Notion content source (unofficial page API)
    notion_page_id: str = ""
    notion_token: str = ""  # token_v2 cookie, only needed for private workspaces

    # Notion translation drafts (official API)
    notion_translation_token: str = Field(
        default="",
        validation_alias=AliasChoices("NOTION_TRANSLATION_TOKEN", "NOTION_API_TOKEN"),
    )
    notion_translation_parent_page_id: str = ""

    # Key-value store
    upstash_redis_rest_url: str = ""
    upstash_redis_rest_token: str = ""
    visitor_timezone: str = "Asia/Seoul"

    # Task queue
    redis_url: str = "redis://localhost:6379/0"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def legacy_translation_dirs(self) -> list[Path]:
        return [Path(d.strip()) for d in self.ai_translations_legacy_dirs.split(",") if d.strip()]

    @property
    def has_upstash(self) -> bool:
        return bool(self.upstash_redis_rest_url and self.upstash_redis_rest_token)

    @property
    def has_notion_drafts(self) -> bool:
        return bool(self.notion_translation_token and self.notion_translation_parent_page_id)


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()


# Global instance
settings = get_settings()
