"""
Slowbeam Notion adapter.

Notion content source, official API client, translation draft
publishing and pipeline wiring.
"""

from .client import NotionAPIError, NotionClient
from .content_source import NotionContentSource
from .drafts import NotionDraftPublisher, NotionTranslationBackend
from .pipeline import (
    create_content_source,
    create_notion_client,
    create_sync_service,
    create_translation_store,
)

__all__ = [
    "NotionAPIError",
    "NotionClient",
    "NotionContentSource",
    "NotionDraftPublisher",
    "NotionTranslationBackend",
    "create_content_source",
    "create_notion_client",
    "create_sync_service",
    "create_translation_store",
]
