"""
Slowbeam Worker - arq worker entry point.

Runs the AI translation sync on a schedule. A single job slot and a fixed
job id keep at most one sync running at a time, so no slug is generated
twice by overlapping runs.

Run with: ``arq slowbeam_worker.main.WorkerSettings``
"""

from typing import Any

from arq import cron
from arq.connections import RedisSettings

from slowbeam_core import get_logger, init_logging
from slowbeam_core.config import settings
from slowbeam_core.kv_store import create_kv_store
from slowbeam_notion import (
    NotionClient,
    create_content_source,
    create_notion_client,
    create_sync_service,
)

from .tasks.translation import SYNC_JOB_ID, sync_translations_task

logger = get_logger(__name__)


async def startup(ctx: dict[str, Any]) -> None:
    """
    Worker startup handler.

    Builds the pipeline once so the translation store cache is shared by
    every scheduled run.

    Args:
        ctx: Worker context dictionary.
    """
    init_logging(settings.log_level)
    logger.info("Starting Slowbeam worker", extra={"version": settings.version})

    kv_store = create_kv_store(settings)
    source = create_content_source(settings)
    notion_client = create_notion_client(settings)
    ctx["settings"] = settings
    ctx["kv_store"] = kv_store
    ctx["content_source"] = source
    ctx["notion_client"] = notion_client
    ctx["sync_service"] = create_sync_service(
        settings, kv_store, source, notion_client=notion_client
    )


async def shutdown(ctx: dict[str, Any]) -> None:
    """
    Worker shutdown handler.

    Args:
        ctx: Worker context dictionary.
    """
    notion_client: NotionClient | None = ctx.get("notion_client")
    if notion_client is not None:
        await notion_client.close()
    logger.info("Shutting down Slowbeam worker")


class WorkerSettings:
    """arq worker configuration."""

    functions = [sync_translations_task]

    cron_jobs = [
        cron(
            sync_translations_task,
            minute={0, 30},
            unique=True,
            job_id=SYNC_JOB_ID,
            timeout=30 * 60,
        ),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = RedisSettings.from_dsn(settings.redis_url)

    # One sync at a time
    max_jobs = 1
    job_timeout = 30 * 60
