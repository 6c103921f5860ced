"""
Translation store.

Persists generated translation records so repeated sync runs never
regenerate a slug. A store reads from one or more backends (a primary plus
optional legacy locations) and writes to the primary only.
"""

import asyncio
import json
import os
import re
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from slowbeam_core import get_logger
from slowbeam_core.schemas.translation import TranslationRecord

logger = get_logger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")


class TranslationBackend(ABC):
    """One physical location of translation records."""

    name: str = "backend"

    @abstractmethod
    async def load(self) -> list[TranslationRecord]:
        """
        Load every stored record.

        A location that does not exist yet holds no records.
        """

    @abstractmethod
    async def save(self, record: TranslationRecord) -> None:
        """Persist a record, replacing any record for the same slug."""

    async def exists_for_slug(self, slug: str) -> bool:
        """Check the location itself for a record of ``slug``."""
        return any(record.slug == slug for record in await self.load())


class LocalFileTranslationBackend(TranslationBackend):
    """Directory of JSON documents, one per slug and language."""

    name = "local"

    def __init__(self, directory: str | Path, language: str = "en") -> None:
        self.directory = Path(directory)
        self.language = language

    def path_for(self, slug: str) -> Path:
        safe = _UNSAFE_FILENAME_CHARS.sub("-", slug)
        return self.directory / f"{safe}-{self.language}.json"

    def _load_sync(self) -> list[TranslationRecord]:
        try:
            names = sorted(os.listdir(self.directory))
        except FileNotFoundError:
            return []

        records: list[TranslationRecord] = []
        for name in names:
            if not name.endswith(".json"):
                continue
            path = self.directory / name
            raw = path.read_text(encoding="utf-8")
            try:
                records.append(TranslationRecord.model_validate(json.loads(raw)))
            except (json.JSONDecodeError, ValidationError):
                logger.warning("Skipping unreadable translation file", extra={"path": str(path)})
        return records

    def _save_sync(self, record: TranslationRecord) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.path_for(record.slug)
        content = json.dumps(record.to_payload(), ensure_ascii=False, indent=2)

        # Write to a sibling temp file first so readers never see a partial document
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _exists_sync(self, slug: str) -> bool:
        path = self.path_for(slug)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return False
        try:
            # Sanitized names can collide, so the stored slug decides
            return TranslationRecord.model_validate(json.loads(raw)).slug == slug
        except (json.JSONDecodeError, ValidationError):
            return False

    async def load(self) -> list[TranslationRecord]:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, record: TranslationRecord) -> None:
        await asyncio.to_thread(self._save_sync, record)

    async def exists_for_slug(self, slug: str) -> bool:
        return await asyncio.to_thread(self._exists_sync, slug)


class TranslationStore:
    """
    Read-through store over one or more backends.

    The first read warms a cache by merging every backend in order; records
    are keyed by translation id (slug when the id is missing) and the first
    one seen wins. Writes go to the primary backend and then extend the
    cache, replacing the entry with the same key.
    """

    def __init__(self, backends: Sequence[TranslationBackend]) -> None:
        if not backends:
            raise ValueError("At least one translation backend is required")
        self.backends = list(backends)
        self._cache: list[TranslationRecord] | None = None

    @property
    def primary(self) -> TranslationBackend:
        return self.backends[0]

    def reset(self) -> None:
        """Drop the cache so the next read reloads from the backends."""
        self._cache = None

    async def list_stored(self) -> list[TranslationRecord]:
        if self._cache is None:
            merged: dict[str, TranslationRecord] = {}
            for backend in self.backends:
                records = await backend.load()
                for record in records:
                    merged.setdefault(record.key, record)
                logger.debug(
                    "Loaded stored translations",
                    extra={"backend": backend.name, "count": len(records)},
                )
            self._cache = list(merged.values())
        return list(self._cache)

    async def write(self, record: TranslationRecord) -> None:
        await self.primary.save(record)
        if self._cache is not None:
            self._cache = [r for r in self._cache if r.key != record.key] + [record]

    async def exists_for_slug(self, slug: str) -> bool:
        return any(r.slug == slug for r in await self.list_stored())

    async def refresh_if_stored(self, slugs: Iterable[str]) -> bool:
        """
        Check the primary backend directly for records of ``slugs``.

        Other processes write to the same primary location, so the cache can
        miss their records. When any slug is found there the cache is dropped
        and the next read reloads every backend.

        Returns:
            True if a record for any of ``slugs`` exists in the primary backend.
        """
        for slug in slugs:
            if await self.primary.exists_for_slug(slug):
                logger.debug("Translation stored outside this process", extra={"slug": slug})
                self.reset()
                return True
        return False

    async def find_by_translation_id(self, translation_id: str) -> TranslationRecord | None:
        for record in await self.list_stored():
            if record.translation.id == translation_id:
                return record
        return None

    async def find_record_map(self, translation_id: str) -> dict[str, Any] | None:
        record = await self.find_by_translation_id(translation_id)
        return record.record_map if record else None
