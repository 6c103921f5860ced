"""Tests for the post service."""

import pytest

from slowbeam_core.errors import ContentSourceError
from slowbeam_core.services.post_service import PostService
from slowbeam_core.services.sync_service import TranslationSyncService
from slowbeam_core.services.translation_store import TranslationStore


@pytest.fixture
def build_service(content_source_factory, memory_backend_factory):
    def _build(posts, record_maps=None, stored=None):
        source = content_source_factory(posts, record_maps)
        store = TranslationStore([memory_backend_factory(stored)])
        sync_service = TranslationSyncService(store, None, disabled=True)
        return PostService(source, sync_service, default_language="ko")

    return _build


class TestGetPosts:
    """Test PostService.get_posts."""

    @pytest.mark.asyncio
    async def test_merges_stored_translations(self, build_service, make_post, make_record):
        service = build_service(
            [make_post("p1", "a", ["ko"]), make_post("p2", "b", ["ko"], status=["Private"])],
            stored=[make_record("a", "p1")],
        )

        response = await service.get_posts()

        assert response.total == 1
        assert response.default_language == "ko"
        assert response.items[0].id == "p1"
        assert [t.id for t in response.items[0].translations] == ["p1-en"]

    @pytest.mark.asyncio
    async def test_language_selects_variant(self, build_service, make_post, make_record):
        service = build_service([make_post("p1", "a", ["ko"])], stored=[make_record("a", "p1")])

        response = await service.get_posts("en")

        assert response.items[0].id == "p1-en"


class TestGetPost:
    """Test PostService.get_post."""

    @pytest.mark.asyncio
    async def test_ai_variant_served_from_store(self, build_service, make_post, make_record):
        record = make_record("a", "p1", recordMap={"block": {"translated": {}}})
        service = build_service([make_post("p1", "a", ["ko"])], stored=[record])

        detail = await service.get_post("a", "en")

        assert detail.post.id == "p1-en"
        assert detail.language == "en"
        assert detail.available_languages == ["ko", "en"]
        assert detail.record_map == {"block": {"translated": {}}}

    @pytest.mark.asyncio
    async def test_source_variant_served_from_content_source(
        self, build_service, make_post, sample_record_map
    ):
        service = build_service(
            [make_post("page-1", "a", ["ko"], type=["Page"])], {"page-1": sample_record_map}
        )

        detail = await service.get_post("a")

        assert detail.language == "ko"
        assert detail.record_map == sample_record_map

    @pytest.mark.asyncio
    async def test_unknown_slug_raises(self, build_service, make_post):
        service = build_service([make_post("p1", "a", ["ko"])])

        with pytest.raises(ValueError, match="not found"):
            await service.get_post("missing")

    @pytest.mark.asyncio
    async def test_content_error_propagates(self, build_service, make_post):
        service = build_service([make_post("p1", "a", ["ko"])])

        with pytest.raises(ContentSourceError):
            await service.get_post("a")
