"""
Translation sync service.

Finds posts that lack an English variant, generates AI translations for
them one at a time, stores the results, and returns the post list augmented
with every stored translation. A failure for one post never stops the others
and the sync as a whole never blocks serving the original posts.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Iterable

from slowbeam_core import get_logger
from slowbeam_core.kv_keys import KVKeys
from slowbeam_core.kv_store import KVStore
from slowbeam_core.language import extract_post_language, has_language
from slowbeam_core.posts import group_posts_by_slug
from slowbeam_core.schemas.post import PostRecord
from slowbeam_core.schemas.translation import SyncReport, TranslationRecord

from .post_translator import TARGET_LANGUAGE, PostTranslator
from .translation_store import TranslationStore

logger = get_logger(__name__)


class TranslationPublisher(ABC):
    """Publishes generated translations to an external system of record."""

    @abstractmethod
    async def publish(self, record: TranslationRecord) -> None:
        """Publish one translation record."""


class TranslationSyncService:
    """Orchestrates AI translation generation for a post list."""

    def __init__(
        self,
        store: TranslationStore,
        translator: PostTranslator | None,
        *,
        publisher: TranslationPublisher | None = None,
        kv_store: KVStore | None = None,
        disabled: bool = False,
        include_untagged_as_source: bool = True,
        target_language: str = TARGET_LANGUAGE,
    ) -> None:
        self.store = store
        self.translator = translator
        self.publisher = publisher
        self.kv_store = kv_store
        self.disabled = disabled
        self.include_untagged_as_source = include_untagged_as_source
        self.target_language = target_language
        # Serializes runs in this process; other writers are detected per slug
        self._lock = asyncio.Lock()

    def select_source(self, group: list[PostRecord]) -> PostRecord | None:
        """Pick the variant to translate from, or None if none is eligible."""
        for post in group:
            language = extract_post_language(post)
            if language is None:
                if self.include_untagged_as_source:
                    return post
                continue
            if language != self.target_language:
                return post
        return None

    def find_pending(
        self, posts: Iterable[PostRecord], stored: Iterable[TranslationRecord]
    ) -> list[tuple[str, PostRecord]]:
        """
        List ``(slug, source post)`` pairs that need a translation.

        A slug is skipped when any variant already has the target language or
        a stored translation exists for it.
        """
        stored_slugs = {record.slug for record in stored}
        pending: list[tuple[str, PostRecord]] = []
        for slug, group in group_posts_by_slug(posts).items():
            if any(has_language(post, self.target_language) for post in group):
                continue
            if slug in stored_slugs:
                continue
            source = self.select_source(group)
            if source is None:
                logger.debug("No eligible translation source", extra={"slug": slug})
                continue
            pending.append((slug, source))
        return pending

    async def sync_translations(self, posts: Iterable[PostRecord]) -> list[PostRecord]:
        """
        Ensure English drafts exist and return posts plus stored translations.

        Args:
            posts: Post variants from the content source.

        Returns:
            The input posts followed by every stored translation post. On
            total failure of the translation subsystem, the input posts.
        """
        augmented, _report = await self.sync(posts)
        return augmented

    async def sync(self, posts: Iterable[PostRecord]) -> tuple[list[PostRecord], SyncReport]:
        """Run a sync and return the augmented posts with a run report."""
        posts = list(posts)
        report = SyncReport()

        async with self._lock:
            try:
                stored = await self.store.list_stored()
            except Exception:
                logger.exception("Failed to load stored translations; serving original posts")
                return posts, report

            pending = self.find_pending(posts, stored)
            if pending:
                try:
                    if await self.store.refresh_if_stored(slug for slug, _ in pending):
                        stored = await self.store.list_stored()
                        pending = self.find_pending(posts, stored)
                except Exception:
                    logger.exception("Failed to check stored translations; serving original posts")
                    return posts, report
            report.pending = [slug for slug, _ in pending]

            if pending:
                if self.disabled:
                    report.disabled = True
                    logger.debug(
                        "AI translation generation disabled", extra={"pending": report.pending}
                    )
                elif self.translator is None:
                    report.missing_credential = True
                    logger.warning(
                        "Missing OPENAI_API_KEY. Unable to generate English versions for: %s",
                        ", ".join(report.pending),
                    )
                else:
                    await self._generate(pending, report)

            try:
                stored = await self.store.list_stored()
            except Exception:
                logger.exception("Failed to reload stored translations")

            report.stored_total = len(stored)
            await self._save_report(report)

        return posts + [record.translation for record in stored], report

    async def _generate(self, pending: list[tuple[str, PostRecord]], report: SyncReport) -> None:
        assert self.translator is not None

        for slug, post in pending:
            try:
                # Another process may have generated it since this run started
                if await self.store.refresh_if_stored([slug]):
                    logger.info("Skipping translation stored by another run", extra={"slug": slug})
                    continue
                record = await self.translator.create_translation(post)
                await self.store.write(record)
            except Exception:
                logger.exception("Failed to translate post", extra={"slug": slug})
                report.failed.append(slug)
                continue

            report.generated.append(slug)
            logger.info(
                "Generated English draft",
                extra={"slug": slug, "model": self.translator.model},
            )
            if record.fallback_texts:
                report.fallbacks[slug] = len(record.fallback_texts)
                logger.warning(
                    "Draft keeps untranslated text",
                    extra={"slug": slug, "fallback_count": len(record.fallback_texts)},
                )

            if self.publisher is not None:
                try:
                    await self.publisher.publish(record)
                except Exception:
                    logger.exception("Failed to publish translation draft", extra={"slug": slug})
                else:
                    report.published.append(slug)

    async def _save_report(self, report: SyncReport) -> None:
        if self.kv_store is None:
            return
        try:
            await self.kv_store.set(KVKeys.AI_TRANSLATION_LAST_SYNC, report.model_dump_json())
        except Exception:
            logger.warning("Failed to record sync report", exc_info=True)
