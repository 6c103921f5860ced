"""
Post translator.

Turns one post into an AI translation record: fetches its block tree,
extracts translatable segments, translates the unique strings in
size-bounded batches, and patches the translated text back into a copy of
the tree.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from slowbeam_core import get_logger
from slowbeam_core.record_map import apply_translations, collect_text_segments
from slowbeam_core.schemas.post import PostRecord
from slowbeam_core.schemas.translation import TranslationRecord

from .content_source import ContentSource
from .translation_providers import TranslationProvider

logger = get_logger(__name__)

TARGET_LANGUAGE = "en"
DEFAULT_BATCH_SIZE = 60


class BatchTranslation(BaseModel):
    """Index-aligned translations of a list of texts."""

    texts: list[str]
    translations: list[str]
    fallback_texts: list[str] = Field(default_factory=list)

    @property
    def mapping(self) -> dict[str, str]:
        return dict(zip(self.texts, self.translations))


def chunk_list(values: list[str], size: int) -> list[list[str]]:
    """Split a list into consecutive chunks of at most ``size`` items."""
    return [values[i : i + size] for i in range(0, len(values), size)]


class PostTranslator:
    """Creates translation records using a translation provider."""

    def __init__(
        self,
        provider: TranslationProvider,
        content_source: ContentSource,
        batch_size: int = DEFAULT_BATCH_SIZE,
        source_language: str = "auto",
        target_language: str = TARGET_LANGUAGE,
    ) -> None:
        self.provider = provider
        self.content_source = content_source
        self.batch_size = batch_size
        self.source_language = source_language
        self.target_language = target_language

    @property
    def model(self) -> str:
        return self.provider.model

    async def translate_batch(self, texts: list[str]) -> list[str]:
        """
        Translate texts, returning a list of the same length.

        Entries that cannot be translated keep their original text.
        """
        return (await self.translate_texts(texts)).translations

    async def translate_texts(self, texts: list[str]) -> BatchTranslation:
        """
        Translate texts with deduplication and chunking.

        Identical strings are sent once. Blank strings are never sent and
        come back unchanged.

        Args:
            texts: Source strings.

        Returns:
            BatchTranslation aligned with ``texts``, listing fallbacks.
        """
        unique = list(dict.fromkeys(t for t in texts if t and t.strip()))
        translated: dict[str, str] = {}
        fallbacks: list[str] = []

        for chunk in chunk_list(unique, self.batch_size):
            results, chunk_fallbacks = await self._translate_chunk(chunk)
            translated.update(zip(chunk, results))
            fallbacks.extend(chunk_fallbacks)

        return BatchTranslation(
            texts=list(texts),
            translations=[translated.get(t, t) for t in texts],
            fallback_texts=fallbacks,
        )

    async def _translate_chunk(self, chunk: list[str]) -> tuple[list[str], list[str]]:
        response = await self.provider.translate_batch(
            chunk, self.source_language, self.target_language
        )

        if len(response) != len(chunk):
            logger.warning(
                "Translation response length mismatch; backfilling",
                extra={"expected": len(chunk), "received": len(response)},
            )
            if len(response) > len(chunk):
                # Extra entries break index correspondence; trust none of them.
                response = []

        results: list[str] = []
        fallbacks: list[str] = []
        for i, text in enumerate(chunk):
            value = response[i] if i < len(response) else None
            if value is None:
                value = await self._retry_single(text)
            if value is None:
                fallbacks.append(text)
                value = text
            results.append(value)
        return results, fallbacks

    async def _retry_single(self, text: str) -> str | None:
        try:
            response = await self.provider.translate_batch(
                [text], self.source_language, self.target_language
            )
        except Exception:
            logger.warning("Single-item translation retry failed", exc_info=True)
            return None
        if len(response) == 1 and response[0]:
            return response[0]
        return None

    async def create_translation(self, post: PostRecord) -> TranslationRecord:
        """
        Create an English translation record for a post.

        Args:
            post: Source post variant.

        Returns:
            TranslationRecord with the translated post and block tree.

        Raises:
            ValueError: If the post has no slug.
        """
        if not post.slug:
            raise ValueError("Post slug is required for translation")

        base = post.without_translations()
        record_map = await self.content_source.get_record_map(post.id)
        segments = collect_text_segments(record_map)

        metadata_texts = [t for t in (base.title, base.summary) if t and t.strip()]
        batch = await self.translate_texts([s.text for s in segments] + metadata_texts)
        translation_map = batch.mapping

        translated_record_map = apply_translations(record_map, segments, translation_map)
        translation = base.model_copy(
            update={
                "id": f"{post.id}-{self.target_language}",
                "title": translation_map.get(base.title, base.title),
                "summary": translation_map.get(base.summary, base.summary)
                if base.summary
                else None,
                "language": [self.target_language],
                "is_ai_translation": True,
            }
        )

        logger.info(
            "Translated post",
            extra={
                "slug": post.slug,
                "segments": len(segments),
                "unique_texts": len(translation_map),
                "fallbacks": len(batch.fallback_texts),
            },
        )
        return TranslationRecord(
            slug=post.slug,
            source_post_id=post.id,
            generated_at=datetime.now(timezone.utc),
            model=self.model,
            translation=translation,
            record_map=translated_record_map,
            fallback_texts=batch.fallback_texts,
        )
