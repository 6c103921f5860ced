"""
Translation schemas.

Text segments addressed inside a block tree, persisted translation records,
and the summary of a sync run.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .post import PostRecord


class TextSegment(BaseModel):
    """A translatable text span addressed by block, property and position."""

    model_config = ConfigDict(frozen=True)

    block_id: str
    property: str
    index: int
    text: str


class TranslationRecord(BaseModel):
    """
    Persisted AI translation of one post.

    Attributes:
        slug: Slug shared with the source post.
        source_post_id: Id of the post that was translated.
        generated_at: Generation timestamp.
        model: Provider model identifier.
        translation: The generated post variant.
        record_map: Translated block tree.
        fallback_texts: Source strings kept verbatim because translation failed.
    """

    model_config = ConfigDict(populate_by_name=True)

    slug: str
    source_post_id: str = Field(alias="sourcePostId")
    generated_at: datetime = Field(alias="generatedAt")
    model: str
    translation: PostRecord
    record_map: dict[str, Any] = Field(default_factory=dict, alias="recordMap")
    fallback_texts: list[str] = Field(default_factory=list, alias="fallbackTexts")

    @property
    def key(self) -> str:
        """Stable merge key: the translation's own id, else its slug."""
        return self.translation.id or self.slug

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SyncReport(BaseModel):
    """Outcome of one translation sync run."""

    pending: list[str] = Field(default_factory=list)
    generated: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    published: list[str] = Field(default_factory=list)
    fallbacks: dict[str, int] = Field(default_factory=dict)
    missing_credential: bool = False
    disabled: bool = False
    stored_total: int = 0
