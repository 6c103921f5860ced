"""Global pytest fixtures for testing."""

import contextlib
import copy
from collections.abc import Callable
from typing import Any

import dotenv
import pytest

from slowbeam_core.errors import ContentSourceError
from slowbeam_core.kv_store import InMemoryKVStore
from slowbeam_core.schemas import PostRecord, TranslationRecord
from slowbeam_core.services import ContentSource, TranslationProvider
from slowbeam_core.services.translation_store import TranslationBackend

with contextlib.suppress(OSError):
    dotenv.load_dotenv()


class FakeContentSource(ContentSource):
    """In-memory content source."""

    def __init__(
        self,
        posts: list[PostRecord] | None = None,
        record_maps: dict[str, dict[str, Any]] | None = None,
    ):
        self.posts = list(posts or [])
        self.record_maps = dict(record_maps or {})
        self.requested: list[str] = []

    async def list_posts(self) -> list[PostRecord]:
        return list(self.posts)

    async def get_record_map(self, page_id: str) -> dict[str, Any]:
        self.requested.append(page_id)
        if page_id not in self.record_maps:
            raise ContentSourceError(f"Unknown page: {page_id}")
        return copy.deepcopy(self.record_maps[page_id])


class FakeProvider(TranslationProvider):
    """
    Scriptable translation provider.

    Queued ``responses`` (lists or exceptions) are consumed first; after
    that every text is translated with ``translate``.
    """

    model = "fake-model"

    def __init__(self, translate: Callable[[str], str | None] | None = None):
        self.translate = translate or (lambda text: f"EN:{text}")
        self.responses: list[list[str | None] | Exception] = []
        self.calls: list[list[str]] = []

    async def translate_batch(
        self, texts: list[str], source: str, target: str
    ) -> list[str | None]:
        self.calls.append(list(texts))
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return [self.translate(text) for text in texts]


class MemoryTranslationBackend(TranslationBackend):
    """Translation backend holding records in a list."""

    name = "memory"

    def __init__(self, records: list[TranslationRecord] | None = None):
        self.records = list(records or [])
        self.saved: list[TranslationRecord] = []
        self.load_calls = 0

    async def load(self) -> list[TranslationRecord]:
        self.load_calls += 1
        return list(self.records)

    async def exists_for_slug(self, slug: str) -> bool:
        return any(r.slug == slug for r in self.records)

    async def save(self, record: TranslationRecord) -> None:
        self.saved.append(record)
        self.records = [r for r in self.records if r.slug != record.slug] + [record]


@pytest.fixture
def make_post() -> Callable[..., PostRecord]:
    """Build a visible post variant; keyword arguments override fields."""

    def _make(post_id: str, slug: str, language: list[str] | None = None, **fields: Any):
        data: dict[str, Any] = {
            "id": post_id,
            "slug": slug,
            "title": f"Title {post_id}",
            "status": ["Public"],
            "type": ["Post"],
            "language": language,
            "createdTime": "2024-01-01T00:00:00+00:00",
        }
        data.update(fields)
        return PostRecord.model_validate(data)

    return _make


@pytest.fixture
def make_record() -> Callable[..., TranslationRecord]:
    """Build a stored translation record for a slug."""

    def _make(slug: str, source_id: str = "src", **fields: Any) -> TranslationRecord:
        data: dict[str, Any] = {
            "slug": slug,
            "sourcePostId": source_id,
            "generatedAt": "2024-02-01T00:00:00+00:00",
            "model": "fake-model",
            "translation": {
                "id": f"{source_id}-en",
                "slug": slug,
                "title": f"English {slug}",
                "status": ["Public"],
                "type": ["Post"],
                "language": ["en"],
                "isAiTranslation": True,
            },
            "recordMap": {"block": {}},
        }
        data.update(fields)
        return TranslationRecord.model_validate(data)

    return _make


@pytest.fixture
def sample_record_map() -> dict[str, Any]:
    """Record map of page "page-1" with one block of each notable kind."""
    return {
        "block": {
            "page-1": {
                "value": {
                    "id": "page-1",
                    "type": "page",
                    "properties": {"title": [["안녕하세요"]]},
                    "content": ["b1", "b2", "b3", "b4", "b5", "b6", "b7"],
                }
            },
            "b1": {
                "value": {
                    "id": "b1",
                    "type": "text",
                    "properties": {"title": [["첫 문단 "], ["굵게", [["b"]]]]},
                }
            },
            "b2": {
                "value": {
                    "id": "b2",
                    "type": "code",
                    "properties": {"title": [["print('안녕')"]], "language": [["Python"]]},
                }
            },
            "b3": {
                "value": {
                    "id": "b3",
                    "type": "header",
                    "properties": {"title": [["제목"]]},
                }
            },
            "b4": {
                "value": {
                    "id": "b4",
                    "type": "image",
                    "properties": {
                        "source": [["https://example.com/a.png"]],
                        "caption": [["사진 설명"]],
                    },
                    "format": {"block_width": 640},
                }
            },
            # Newer responses nest the value one level deeper
            "b5": {
                "value": {
                    "value": {
                        "id": "b5",
                        "type": "bulleted_list",
                        "properties": {"title": [["첫 문단 "]]},
                    },
                    "role": "reader",
                }
            },
            "b6": {"value": {"id": "b6", "type": "divider"}},
            "b7": {
                "value": {
                    "id": "b7",
                    "type": "equation",
                    "properties": {"title": [["E=mc^2"]]},
                }
            },
        }
    }


@pytest.fixture
def content_source_factory() -> type[FakeContentSource]:
    """Provide the in-memory content source class."""
    return FakeContentSource


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Provider that prefixes every text with "EN:"."""
    return FakeProvider()


@pytest.fixture
def memory_backend_factory() -> type[MemoryTranslationBackend]:
    """Provide the in-memory translation backend class."""
    return MemoryTranslationBackend


@pytest.fixture
def kv_store() -> InMemoryKVStore:
    """Fresh in-memory key-value store."""
    return InMemoryKVStore()
