"""
Notion translation drafts.

Generated translations are mirrored as child pages of a configured parent
page so editors can review them in Notion. Two flavors share the page
layout:

- NotionDraftPublisher writes a readable draft (metadata callout plus one
  paragraph per text block).
- NotionTranslationBackend also embeds the full translation record as JSON
  code blocks, making the parent page a durable translation store.
"""

import json
from typing import Any

from pydantic import ValidationError

from slowbeam_core import get_logger
from slowbeam_core.record_map import collect_document_texts
from slowbeam_core.schemas.translation import TranslationRecord
from slowbeam_core.services.sync_service import TranslationPublisher
from slowbeam_core.services.translation_store import TranslationBackend

from .client import MAX_RICH_TEXT_LENGTH, NotionClient, plain_text

logger = get_logger(__name__)

DRAFT_TITLE_SUFFIX = " (English draft)"
PAYLOAD_CAPTION = "slowbeam:translation-record"
# Paragraph text is cut short of the hard rich-text limit
PARAGRAPH_TEXT_LIMIT = 1900


def draft_title(slug: str) -> str:
    return f"{slug}{DRAFT_TITLE_SUFFIX}"


def _rich_text(content: str) -> list[dict[str, Any]]:
    return [{"type": "text", "text": {"content": content}}]


def truncate(text: str, limit: int = PARAGRAPH_TEXT_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def paragraph_block(text: str) -> dict[str, Any]:
    return {
        "object": "block",
        "type": "paragraph",
        "paragraph": {"rich_text": _rich_text(truncate(text))},
    }


def metadata_callout(record: TranslationRecord) -> dict[str, Any]:
    lines = [
        f"AI translation of '{record.slug}'",
        f"Source post: {record.source_post_id}",
        f"Model: {record.model}",
        f"Generated at: {record.generated_at.isoformat()}",
    ]
    if record.fallback_texts:
        lines.append(f"Untranslated segments: {len(record.fallback_texts)}")
    return {
        "object": "block",
        "type": "callout",
        "callout": {
            "rich_text": _rich_text("\n".join(lines)),
            "icon": {"type": "emoji", "emoji": "🤖"},
        },
    }


def draft_blocks(record: TranslationRecord) -> list[dict[str, Any]]:
    """Readable blocks: metadata callout, title, then document text."""
    blocks = [metadata_callout(record)]
    if record.translation.title:
        blocks.append(paragraph_block(record.translation.title))
    texts = collect_document_texts(record.record_map, record.source_post_id)
    blocks.extend(paragraph_block(text) for text in texts)
    return blocks


def payload_blocks(record: TranslationRecord) -> list[dict[str, Any]]:
    """Serialize a record into JSON code blocks under the rich-text limit."""
    payload = json.dumps(record.to_payload(), ensure_ascii=False, separators=(",", ":"))
    return [
        {
            "object": "block",
            "type": "code",
            "code": {
                "language": "json",
                "rich_text": _rich_text(payload[i : i + MAX_RICH_TEXT_LENGTH]),
                "caption": _rich_text(PAYLOAD_CAPTION),
            },
        }
        for i in range(0, len(payload), MAX_RICH_TEXT_LENGTH)
    ]


def read_payload(children: list[dict[str, Any]]) -> str:
    """Reassemble the JSON payload from a page's code blocks, in order."""
    parts: list[str] = []
    for child in children:
        if child.get("type") != "code":
            continue
        code = child.get("code") or {}
        if plain_text(code.get("caption")) != PAYLOAD_CAPTION:
            continue
        parts.append(plain_text(code.get("rich_text")))
    return "".join(parts)


async def upsert_draft_page(
    client: NotionClient,
    parent_page_id: str,
    title: str,
    blocks: list[dict[str, Any]],
) -> str:
    """Create the draft page or replace the content of an existing one."""
    page_id = await client.find_child_page(parent_page_id, title)
    if page_id is None:
        page = await client.create_page(parent_page_id, title, blocks)
        return page["id"]

    await client.update_page_title(page_id, title)
    await client.replace_children(page_id, blocks)
    return page_id


class NotionDraftPublisher(TranslationPublisher):
    """Publishes readable translation drafts for editor review."""

    def __init__(self, client: NotionClient, parent_page_id: str) -> None:
        self.client = client
        self.parent_page_id = parent_page_id

    async def publish(self, record: TranslationRecord) -> None:
        page_id = await upsert_draft_page(
            self.client, self.parent_page_id, draft_title(record.slug), draft_blocks(record)
        )
        logger.info("Published Notion draft", extra={"slug": record.slug, "page_id": page_id})


class NotionTranslationBackend(TranslationBackend, TranslationPublisher):
    """
    Translation records stored as Notion draft pages.

    Each page carries the readable draft followed by the serialized record.
    Pages without a readable payload are skipped on load.
    """

    name = "notion"

    def __init__(self, client: NotionClient, parent_page_id: str) -> None:
        self.client = client
        self.parent_page_id = parent_page_id

    async def load(self) -> list[TranslationRecord]:
        records: list[TranslationRecord] = []
        for page_id, title in await self.client.list_child_pages(self.parent_page_id):
            if not title.endswith(DRAFT_TITLE_SUFFIX):
                continue
            payload = read_payload(await self.client.list_children(page_id))
            if not payload:
                continue
            try:
                records.append(TranslationRecord.model_validate(json.loads(payload)))
            except (json.JSONDecodeError, ValidationError):
                logger.warning("Skipping unreadable Notion translation", extra={"page_id": page_id})
        return records

    async def exists_for_slug(self, slug: str) -> bool:
        page_id = await self.client.find_child_page(self.parent_page_id, draft_title(slug))
        if page_id is None:
            return False
        return bool(read_payload(await self.client.list_children(page_id)))

    async def save(self, record: TranslationRecord) -> None:
        blocks = draft_blocks(record) + payload_blocks(record)
        page_id = await upsert_draft_page(
            self.client, self.parent_page_id, draft_title(record.slug), blocks
        )
        logger.info("Stored translation in Notion", extra={"slug": record.slug, "page_id": page_id})

    async def publish(self, record: TranslationRecord) -> None:
        await self.save(record)
