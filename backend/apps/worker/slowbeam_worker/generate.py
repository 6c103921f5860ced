"""
Generate English drafts from the command line.

Runs one translation sync outside the worker, ignoring
``AI_TRANSLATIONS_DISABLED``. Unlike the scheduled task, missing
credentials are fatal here.

Usage: ``slowbeam-generate-translations [--log-level DEBUG]``
"""

import asyncio
import time
from typing import Annotated

import typer

from slowbeam_core import get_logger, init_logging
from slowbeam_core.config import Settings, get_settings
from slowbeam_core.errors import MissingCredentialError
from slowbeam_core.kv_store import create_kv_store
from slowbeam_core.schemas.translation import SyncReport
from slowbeam_notion import create_content_source, create_notion_client, create_sync_service

from .tasks.translation import run_sync

logger = get_logger(__name__)

app = typer.Typer(
    name="slowbeam-generate-translations",
    help="Generate English AI translations for posts that lack one.",
    add_completion=False,
)


def check_credentials(settings: Settings) -> None:
    """
    Ensure the settings needed for generation are present.

    Raises:
        MissingCredentialError: If OPENAI_API_KEY or NOTION_PAGE_ID is missing.
    """
    if not settings.openai_api_key.strip():
        raise MissingCredentialError("OPENAI_API_KEY is required to generate translations")
    if not settings.notion_page_id.strip():
        raise MissingCredentialError("NOTION_PAGE_ID is required to load posts")


async def generate(settings: Settings) -> SyncReport:
    kv_store = create_kv_store(settings)
    source = create_content_source(settings)
    notion_client = create_notion_client(settings)
    try:
        service = create_sync_service(
            settings, kv_store, source, notion_client=notion_client, force=True
        )
        return await run_sync(source, service)
    finally:
        if notion_client is not None:
            await notion_client.close()


@app.command()
def main(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override LOG_LEVEL for this run."),
    ] = None,
) -> None:
    """Generate missing English drafts and report the outcome."""
    settings = get_settings()
    init_logging(log_level or settings.log_level)

    try:
        check_credentials(settings)
    except MissingCredentialError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from None

    started = time.perf_counter()
    report = asyncio.run(generate(settings))
    duration = time.perf_counter() - started

    logger.info(
        "Translation generation complete",
        extra={"duration_s": round(duration, 2), "generated": len(report.generated)},
    )
    typer.echo(
        f"Generated {len(report.generated)} draft(s), {len(report.failed)} failed, "
        f"{report.stored_total} stored in {duration:.1f}s"
    )
    if report.failed:
        typer.echo(f"Failed: {', '.join(report.failed)}")


if __name__ == "__main__":
    app()
