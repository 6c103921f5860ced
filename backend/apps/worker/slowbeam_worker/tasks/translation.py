"""Translation sync worker task.

Loads the post list from Notion and runs the AI translation sync so every
post without an English variant gets a stored English draft. Missing
credentials only degrade the run; stored drafts stay untouched.
"""

from typing import Any

from slowbeam_core import get_logger
from slowbeam_core.config import Settings, get_settings
from slowbeam_core.kv_store import KVStore, create_kv_store
from slowbeam_core.schemas.translation import SyncReport
from slowbeam_core.services.content_source import ContentSource
from slowbeam_core.services.sync_service import TranslationSyncService
from slowbeam_notion import create_content_source, create_notion_client, create_sync_service

logger = get_logger(__name__)

SYNC_JOB_ID = "ai-translation-sync"


async def run_sync(source: ContentSource, service: TranslationSyncService) -> SyncReport:
    """List posts from ``source`` and sync their translations."""
    posts = await source.list_posts()
    logger.info("Starting translation sync", extra={"posts": len(posts)})

    _augmented, report = await service.sync(posts)
    logger.info(
        "Translation sync finished",
        extra={
            "pending": len(report.pending),
            "generated": len(report.generated),
            "failed": len(report.failed),
            "stored_total": report.stored_total,
        },
    )
    return report


async def sync_translations_task(ctx: dict[str, Any]) -> dict[str, Any]:
    """
    Run one translation sync.

    Args:
        ctx: Worker context. ``content_source`` and ``sync_service`` are
            reused when the worker startup hook provided them.

    Returns:
        The sync report as a dictionary.
    """
    source: ContentSource | None = ctx.get("content_source")
    service: TranslationSyncService | None = ctx.get("sync_service")

    if source is not None and service is not None:
        report = await run_sync(source, service)
        return report.model_dump()

    settings: Settings = ctx.get("settings") or get_settings()
    kv_store: KVStore = ctx.get("kv_store") or create_kv_store(settings)
    source = create_content_source(settings)
    notion_client = create_notion_client(settings)
    try:
        service = create_sync_service(settings, kv_store, source, notion_client=notion_client)
        report = await run_sync(source, service)
    finally:
        if notion_client is not None:
            await notion_client.close()
    return report.model_dump()
