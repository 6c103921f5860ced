"""
Post service.

Builds the merged, language-aware post feed and post detail views from the
content source and the translation sync.
"""

from typing import Any

from slowbeam_core import get_logger
from slowbeam_core.language import (
    available_languages,
    extract_post_language,
    select_post_by_language,
)
from slowbeam_core.posts import (
    DETAIL_STATUS,
    DETAIL_TYPE,
    FEED_STATUS,
    FEED_TYPE,
    filter_posts,
    merge_posts_by_language,
)
from slowbeam_core.schemas.post import PostDetailResponse, PostListResponse, PostRecord

from .content_source import ContentSource
from .sync_service import TranslationSyncService

logger = get_logger(__name__)


class PostService:
    """Post feed and detail service."""

    def __init__(
        self,
        content_source: ContentSource,
        sync_service: TranslationSyncService,
        default_language: str,
    ) -> None:
        self.content_source = content_source
        self.sync_service = sync_service
        self.default_language = default_language

    async def _load_posts(self) -> list[PostRecord]:
        posts = await self.content_source.list_posts()
        return await self.sync_service.sync_translations(posts)

    async def get_posts(self, language: str | None = None) -> PostListResponse:
        """
        Get the merged post feed.

        Args:
            language: Optional language; when given each item is the variant
                for that language (falling back to the default language).

        Returns:
            Merged feed in source order.
        """
        posts = filter_posts(await self._load_posts(), FEED_STATUS, FEED_TYPE)
        merged = merge_posts_by_language(posts, self.default_language)
        if language:
            merged = [select_post_by_language(p, language, self.default_language) for p in merged]
        return PostListResponse(
            items=merged, total=len(merged), default_language=self.default_language
        )

    async def get_post(self, slug: str, language: str | None = None) -> PostDetailResponse:
        """
        Get one post with the block tree of the selected variant.

        AI translations are served from the translation store; other variants
        are fetched from the content source.

        Args:
            slug: Post slug.
            language: Requested language.

        Returns:
            Post detail.

        Raises:
            ValueError: If no visible post has this slug.
            ContentSourceError: If the block tree cannot be loaded.
        """
        posts = filter_posts(await self._load_posts(), DETAIL_STATUS, DETAIL_TYPE)
        merged = next(
            (p for p in merge_posts_by_language(posts, self.default_language) if p.slug == slug),
            None,
        )
        if merged is None:
            raise ValueError(f"Post not found: {slug}")

        selected = select_post_by_language(merged, language, self.default_language)
        logger.debug(
            "Selected post variant",
            extra={"slug": slug, "post_id": selected.id, "ai": selected.is_ai_translation},
        )
        record_map: dict[str, Any] | None
        if selected.is_ai_translation:
            record_map = await self.sync_service.store.find_record_map(selected.id)
        else:
            record_map = await self.content_source.get_record_map(selected.id)

        return PostDetailResponse(
            post=selected,
            language=extract_post_language(selected) or self.default_language,
            available_languages=available_languages(merged),
            record_map=record_map,
        )
