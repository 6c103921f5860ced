"""Tests for the translation store."""

import json

import pytest

from slowbeam_core.services.translation_store import (
    LocalFileTranslationBackend,
    TranslationStore,
)


class TestLocalFileTranslationBackend:
    """Test LocalFileTranslationBackend."""

    @pytest.mark.asyncio
    async def test_missing_directory_is_empty(self, tmp_path):
        backend = LocalFileTranslationBackend(tmp_path / "missing")

        assert await backend.load() == []

    @pytest.mark.asyncio
    async def test_save_writes_named_document(self, tmp_path, make_record):
        backend = LocalFileTranslationBackend(tmp_path / "store")
        record = make_record("hello-world", "p1")

        await backend.save(record)

        path = tmp_path / "store" / "hello-world-en.json"
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["slug"] == "hello-world"
        assert payload["sourcePostId"] == "p1"
        assert payload["translation"]["isAiTranslation"] is True
        assert [r.slug for r in await backend.load()] == ["hello-world"]

    def test_unsafe_slug_characters_are_replaced(self, tmp_path):
        backend = LocalFileTranslationBackend(tmp_path)

        assert backend.path_for("a/../b c").name == "a----b-c-en.json"

    @pytest.mark.asyncio
    async def test_save_replaces_existing(self, tmp_path, make_record):
        backend = LocalFileTranslationBackend(tmp_path)
        await backend.save(make_record("a", "p1", model="old"))

        await backend.save(make_record("a", "p1", model="new"))

        records = await backend.load()
        assert [r.model for r in records] == ["new"]
        assert not list(tmp_path.glob("*.tmp"))

    @pytest.mark.asyncio
    async def test_unreadable_files_are_skipped(self, tmp_path, make_record):
        (tmp_path / "broken-en.json").write_text("{not json", encoding="utf-8")
        (tmp_path / "invalid-en.json").write_text(json.dumps({"slug": "x"}), encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
        backend = LocalFileTranslationBackend(tmp_path)
        await backend.save(make_record("ok", "p1"))

        assert [r.slug for r in await backend.load()] == ["ok"]

    @pytest.mark.asyncio
    async def test_exists_for_slug_reads_the_file(self, tmp_path, make_record):
        backend = LocalFileTranslationBackend(tmp_path)
        await backend.save(make_record("a b", "p1"))

        assert await backend.exists_for_slug("a b")
        # Same file name after sanitizing, different slug
        assert not await backend.exists_for_slug("a-b")
        assert not await backend.exists_for_slug("missing")


class TestTranslationStore:
    """Test TranslationStore merging and caching."""

    def test_requires_backend(self):
        with pytest.raises(ValueError):
            TranslationStore([])

    @pytest.mark.asyncio
    async def test_first_seen_wins_across_backends(self, memory_backend_factory, make_record):
        primary = memory_backend_factory([make_record("a", "p1", model="primary")])
        legacy = memory_backend_factory(
            [make_record("a", "p1", model="legacy"), make_record("b", "p2")]
        )
        store = TranslationStore([primary, legacy])

        records = await store.list_stored()

        assert [(r.slug, r.model) for r in records] == [("a", "primary"), ("b", "fake-model")]

    @pytest.mark.asyncio
    async def test_key_falls_back_to_slug(self, memory_backend_factory, make_record):
        record = make_record("a", "p1")
        record.translation.id = ""
        other = make_record("a", "p2")
        other.translation.id = ""
        store = TranslationStore([memory_backend_factory([record, other])])

        assert len(await store.list_stored()) == 1

    @pytest.mark.asyncio
    async def test_cache_reads_backends_once(self, memory_backend_factory, make_record):
        backend = memory_backend_factory([make_record("a", "p1")])
        store = TranslationStore([backend])

        await store.list_stored()
        await store.list_stored()

        assert backend.load_calls == 1
        store.reset()
        await store.list_stored()
        assert backend.load_calls == 2

    @pytest.mark.asyncio
    async def test_write_goes_to_primary_and_extends_cache(
        self, memory_backend_factory, make_record
    ):
        primary = memory_backend_factory()
        legacy = memory_backend_factory([make_record("old", "p0")])
        store = TranslationStore([primary, legacy])
        await store.list_stored()

        await store.write(make_record("new", "p1"))

        assert [r.slug for r in primary.saved] == ["new"]
        assert legacy.saved == []
        assert {r.slug for r in await store.list_stored()} == {"old", "new"}
        assert primary.load_calls == 1

    @pytest.mark.asyncio
    async def test_write_to_cold_cache_keeps_disk_records(self, tmp_path, make_record):
        backend = LocalFileTranslationBackend(tmp_path)
        await backend.save(make_record("existing", "p0"))
        store = TranslationStore([backend])

        await store.write(make_record("new", "p1"))

        assert {r.slug for r in await store.list_stored()} == {"existing", "new"}

    @pytest.mark.asyncio
    async def test_lookups(self, memory_backend_factory, make_record):
        record = make_record("a", "p1", recordMap={"block": {"x": {}}})
        store = TranslationStore([memory_backend_factory([record])])

        assert await store.exists_for_slug("a")
        assert not await store.exists_for_slug("b")
        assert (await store.find_by_translation_id("p1-en")).slug == "a"
        assert await store.find_record_map("p1-en") == {"block": {"x": {}}}
        assert await store.find_record_map("nope") is None

    @pytest.mark.asyncio
    async def test_refresh_sees_records_written_by_another_store(self, tmp_path, make_record):
        warm = TranslationStore([LocalFileTranslationBackend(tmp_path)])
        other = TranslationStore([LocalFileTranslationBackend(tmp_path)])
        assert await warm.list_stored() == []

        await other.write(make_record("a", "p1"))

        assert not await warm.exists_for_slug("a")
        assert not await warm.refresh_if_stored(["b"])
        assert await warm.refresh_if_stored(["b", "a"])
        assert await warm.exists_for_slug("a")
