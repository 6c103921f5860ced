"""
Post schemas.

A PostRecord is one language variant of a logical post as yielded by the
content source. Field names are snake_case in Python and serialize with the
camelCase names used by the blog front end and the stored translation files.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slowbeam_core.language import ensure_language_array


class PostDate(BaseModel):
    """Publication date range of a post."""

    model_config = ConfigDict(extra="allow")

    start_date: str | None = None


class PostAuthor(BaseModel):
    """Post author as exposed by the Notion person property."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: str = ""
    profile_photo: str | None = None


class PostRecord(BaseModel):
    """One language variant of a post."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    slug: str = ""
    title: str = ""
    summary: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: list[str] = Field(default_factory=list)
    type: list[str] = Field(default_factory=list)  # Post / Paper / Page
    status: list[str] = Field(default_factory=list)  # Public / PublicOnDetail / Private
    language: list[str] | None = None  # First element is authoritative
    created_time: str = Field(default="", alias="createdTime")
    date: PostDate | None = None
    full_width: bool = Field(default=False, alias="fullWidth")
    thumbnail: str | None = None
    author: list[PostAuthor] | None = None
    is_ai_translation: bool = Field(default=False, alias="isAiTranslation")
    translations: list["PostRecord"] | None = None

    @field_validator("language", mode="before")
    @classmethod
    def coerce_language(cls, value: Any) -> Any:
        """Accept a single language string as well as a list of tags."""
        if value is None or isinstance(value, str | list | tuple):
            return ensure_language_array(value)
        return value

    def without_translations(self) -> "PostRecord":
        """Return a copy without the nested ``translations`` list."""
        return self.model_copy(update={"translations": None})

    def to_payload(self) -> dict[str, Any]:
        """Serialize with wire (camelCase) names, omitting empty optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class PostListResponse(BaseModel):
    """Merged post feed response."""

    items: list[PostRecord]
    total: int
    default_language: str


class PostDetailResponse(BaseModel):
    """A single merged post with the block tree of the selected variant."""

    post: PostRecord
    language: str
    available_languages: list[str]
    record_map: dict[str, Any] | None = None
