"""Tests for the translation sync service."""

import asyncio
import json
import logging
from unittest.mock import AsyncMock

import pytest

from slowbeam_core.kv_keys import KVKeys
from slowbeam_core.services.post_translator import PostTranslator
from slowbeam_core.services.sync_service import TranslationSyncService
from slowbeam_core.services.translation_store import LocalFileTranslationBackend, TranslationStore


@pytest.fixture
def page_map(sample_record_map):
    """Return a record map factory keyed by page id."""

    def _build(*page_ids):
        return {page_id: sample_record_map for page_id in page_ids}

    return _build


def _service(source, provider, backend, **kwargs):
    translator = PostTranslator(provider, source) if provider is not None else None
    return TranslationSyncService(TranslationStore([backend]), translator, **kwargs)


class TestFindPending:
    """Test pending-slug detection and source selection."""

    def test_skips_slugs_with_target_language(self, make_post, make_record):
        service = TranslationSyncService(TranslationStore([AsyncMock()]), None)
        posts = [
            make_post("1", "a", ["ko"]),
            make_post("2", "a", ["en-US"]),
            make_post("3", "b", ["ko"]),
            make_post("4", "c", ["ko"]),
        ]

        pending = service.find_pending(posts, [make_record("c", "4")])

        assert [(slug, post.id) for slug, post in pending] == [("b", "3")]

    def test_untagged_source_respects_flag(self, make_post):
        posts = [make_post("1", "a")]
        including = TranslationSyncService(TranslationStore([AsyncMock()]), None)
        excluding = TranslationSyncService(
            TranslationStore([AsyncMock()]), None, include_untagged_as_source=False
        )

        assert [slug for slug, _ in including.find_pending(posts, [])] == ["a"]
        assert excluding.find_pending(posts, []) == []

    def test_first_non_target_variant_is_source(self, make_post):
        service = TranslationSyncService(
            TranslationStore([AsyncMock()]), None, include_untagged_as_source=False
        )
        posts = [make_post("1", "a"), make_post("2", "a", ["ja"]), make_post("3", "a", ["ko"])]

        assert [post.id for _, post in service.find_pending(posts, [])] == ["2"]


class TestSyncTranslations:
    """Test TranslationSyncService.sync_translations."""

    @pytest.mark.asyncio
    async def test_generates_and_appends_translations(
        self, make_post, fake_provider, memory_backend_factory, content_source_factory, page_map
    ):
        posts = [make_post("p1", "a", ["ko"]), make_post("p2", "b", ["ko"])]
        source = content_source_factory(posts, page_map("p1", "p2"))
        backend = memory_backend_factory()
        service = _service(source, fake_provider, backend)

        result = await service.sync_translations(posts)

        assert [p.id for p in result] == ["p1", "p2", "p1-en", "p2-en"]
        assert [r.slug for r in backend.saved] == ["a", "b"]
        assert all(p.is_ai_translation for p in result[2:])

    @pytest.mark.asyncio
    async def test_second_run_is_idempotent(
        self, make_post, fake_provider, memory_backend_factory, content_source_factory, page_map
    ):
        posts = [make_post("p1", "a", ["ko"])]
        source = content_source_factory(posts, page_map("p1"))
        backend = memory_backend_factory()
        service = _service(source, fake_provider, backend)

        first = await service.sync_translations(posts)
        calls_after_first = len(fake_provider.calls)
        second = await service.sync_translations(posts)

        assert [p.id for p in first] == [p.id for p in second]
        assert len(fake_provider.calls) == calls_after_first
        assert len(backend.saved) == 1

    @pytest.mark.asyncio
    async def test_fresh_service_sees_stored_translations(
        self, make_post, fake_provider, memory_backend_factory, content_source_factory, page_map
    ):
        posts = [make_post("p1", "a", ["ko"])]
        source = content_source_factory(posts, page_map("p1"))
        backend = memory_backend_factory()
        await _service(source, fake_provider, backend).sync_translations(posts)

        other_provider = type(fake_provider)()
        result = await _service(source, other_provider, backend).sync_translations(posts)

        assert other_provider.calls == []
        assert [p.id for p in result] == ["p1", "p1-en"]

    @pytest.mark.asyncio
    async def test_concurrent_runs_generate_once(
        self, make_post, fake_provider, memory_backend_factory, content_source_factory, page_map
    ):
        posts = [make_post("p1", "a", ["ko"])]
        source = content_source_factory(posts, page_map("p1"))
        backend = memory_backend_factory()
        service = _service(source, fake_provider, backend)

        await asyncio.gather(service.sync_translations(posts), service.sync_translations(posts))

        assert [r.slug for r in backend.saved] == ["a"]

    @pytest.mark.asyncio
    async def test_services_sharing_a_directory_generate_once(
        self, tmp_path, make_post, fake_provider, content_source_factory, page_map
    ):
        posts = [make_post("p1", "a", ["ko"])]
        source = content_source_factory(posts, page_map("p1"))
        first_provider = type(fake_provider)()
        second_provider = type(fake_provider)()
        first = _service(source, first_provider, LocalFileTranslationBackend(tmp_path))
        second = _service(source, second_provider, LocalFileTranslationBackend(tmp_path))
        assert await second.store.list_stored() == []

        await first.sync_translations(posts)
        augmented, report = await second.sync(posts)

        assert first_provider.calls
        assert second_provider.calls == []
        assert report.pending == []
        assert [p.id for p in augmented] == ["p1", "p1-en"]

    @pytest.mark.asyncio
    async def test_disabled_service_picks_up_records_from_other_writers(
        self, tmp_path, make_post, make_record
    ):
        posts = [make_post("p1", "a", ["ko"])]
        reader = TranslationSyncService(
            TranslationStore([LocalFileTranslationBackend(tmp_path)]), None, disabled=True
        )
        assert [p.id for p in await reader.sync_translations(posts)] == ["p1"]

        await LocalFileTranslationBackend(tmp_path).save(make_record("a", "p1"))

        assert [p.id for p in await reader.sync_translations(posts)] == ["p1", "p1-en"]

    @pytest.mark.asyncio
    async def test_slug_stored_during_run_is_skipped(
        self,
        make_post,
        make_record,
        fake_provider,
        memory_backend_factory,
        content_source_factory,
        page_map,
    ):
        posts = [make_post("p1", "a", ["ko"]), make_post("p2", "b", ["ko"])]
        source = content_source_factory(posts, page_map("p1", "p2"))
        backend = memory_backend_factory()

        def translate_while_another_run_stores_b(text):
            if not any(r.slug == "b" for r in backend.records):
                backend.records.append(make_record("b", "p2"))
            return f"EN:{text}"

        provider = type(fake_provider)(translate_while_another_run_stores_b)
        service = _service(source, provider, backend)

        augmented, report = await service.sync(posts)

        assert report.generated == ["a"]
        assert [r.slug for r in backend.saved] == ["a"]
        assert {p.id for p in augmented} == {"p1", "p2", "p1-en", "p2-en"}

    @pytest.mark.asyncio
    async def test_failure_is_isolated_per_post(
        self, make_post, fake_provider, memory_backend_factory, content_source_factory, page_map
    ):
        posts = [
            make_post("p1", "a", ["ko"]),
            make_post("broken", "b", ["ko"]),
            make_post("p3", "c", ["ko"]),
        ]
        source = content_source_factory(posts, page_map("p1", "p3"))
        backend = memory_backend_factory()
        service = _service(source, fake_provider, backend)

        result, report = await service.sync(posts)

        assert report.generated == ["a", "c"]
        assert report.failed == ["b"]
        assert [p.id for p in result][3:] == ["p1-en", "p3-en"]

    @pytest.mark.asyncio
    async def test_missing_credential_warns_once(
        self, make_post, make_record, memory_backend_factory, caplog
    ):
        posts = [
            make_post("p1", "a", ["ko"]),
            make_post("p2", "b", ["ko"]),
            make_post("p3", "c", ["ko"]),
        ]
        backend = memory_backend_factory([make_record("c", "p3")])
        service = _service(None, None, backend)

        with caplog.at_level(logging.WARNING):
            result, report = await service.sync(posts)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "OPENAI_API_KEY" in warnings[0].getMessage()
        assert "a, b" in warnings[0].getMessage()
        assert report.missing_credential is True
        assert [p.id for p in result] == ["p1", "p2", "p3", "p3-en"]

    @pytest.mark.asyncio
    async def test_disabled_serves_stored_without_warning(
        self, make_post, make_record, fake_provider, memory_backend_factory,
        content_source_factory, caplog,
    ):
        posts = [make_post("p1", "a", ["ko"]), make_post("p2", "b", ["ko"])]
        backend = memory_backend_factory([make_record("b", "p2")])
        service = _service(content_source_factory(posts), fake_provider, backend, disabled=True)

        with caplog.at_level(logging.WARNING):
            result, report = await service.sync(posts)

        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert fake_provider.calls == []
        assert report.disabled is True
        assert [p.id for p in result] == ["p1", "p2", "p2-en"]

    @pytest.mark.asyncio
    async def test_store_failure_returns_original_posts(self, make_post, fake_provider):
        backend = AsyncMock()
        backend.name = "broken"
        backend.load.side_effect = OSError("disk gone")
        posts = [make_post("p1", "a", ["ko"])]
        service = TranslationSyncService(TranslationStore([backend]), None)

        result = await service.sync_translations(posts)

        assert result == posts

    @pytest.mark.asyncio
    async def test_fallbacks_are_reported(
        self, make_post, fake_provider, memory_backend_factory, content_source_factory, page_map
    ):
        """Untranslatable text is kept and counted, and the draft is still stored."""
        provider = type(fake_provider)(lambda text: None if text == "제목" else f"EN:{text}")
        posts = [make_post("p1", "a", ["ko"])]
        source = content_source_factory(posts, page_map("p1"))
        backend = memory_backend_factory()
        service = _service(source, provider, backend)

        _, report = await service.sync(posts)

        assert report.generated == ["a"]
        assert report.fallbacks == {"a": 1}
        assert backend.saved[0].fallback_texts == ["제목"]

    @pytest.mark.asyncio
    async def test_publisher_failure_does_not_fail_post(
        self, make_post, fake_provider, memory_backend_factory, content_source_factory, page_map
    ):
        posts = [make_post("p1", "a", ["ko"]), make_post("p2", "b", ["ko"])]
        source = content_source_factory(posts, page_map("p1", "p2"))
        publisher = AsyncMock()
        publisher.publish.side_effect = [RuntimeError("notion down"), None]
        service = _service(source, fake_provider, memory_backend_factory(), publisher=publisher)

        _, report = await service.sync(posts)

        assert report.generated == ["a", "b"]
        assert report.published == ["b"]
        assert publisher.publish.await_count == 2

    @pytest.mark.asyncio
    async def test_report_saved_to_kv_store(
        self, make_post, fake_provider, memory_backend_factory, content_source_factory,
        page_map, kv_store,
    ):
        posts = [make_post("p1", "a", ["ko"])]
        source = content_source_factory(posts, page_map("p1"))
        service = _service(source, fake_provider, memory_backend_factory(), kv_store=kv_store)

        await service.sync(posts)

        saved = json.loads(await kv_store.get(KVKeys.AI_TRANSLATION_LAST_SYNC))
        assert saved["generated"] == ["a"]
        assert saved["stored_total"] == 1
