"""
Pipeline wiring.

Builds the translation sync service from settings: Notion content source,
translation store backends, provider, translator and draft publisher.
"""

from slowbeam_core import get_logger
from slowbeam_core.config import Settings
from slowbeam_core.kv_store import KVStore
from slowbeam_core.services.content_source import ContentSource
from slowbeam_core.services.post_translator import PostTranslator
from slowbeam_core.services.sync_service import TranslationPublisher, TranslationSyncService
from slowbeam_core.services.translation_providers import create_translation_provider
from slowbeam_core.services.translation_store import (
    LocalFileTranslationBackend,
    TranslationBackend,
    TranslationStore,
)

from .client import NotionClient
from .content_source import NotionContentSource
from .drafts import NotionDraftPublisher, NotionTranslationBackend

logger = get_logger(__name__)


def create_content_source(settings: Settings) -> NotionContentSource:
    return NotionContentSource(settings.notion_page_id, token=settings.notion_token)


def create_notion_client(settings: Settings) -> NotionClient | None:
    if not settings.has_notion_drafts:
        return None
    return NotionClient(settings.notion_translation_token)


def create_translation_store(
    settings: Settings, notion_client: NotionClient | None = None
) -> tuple[TranslationStore, TranslationPublisher | None]:
    """
    Build the translation store and the matching publisher.

    Store modes:
        - local: files in ``ai_translations_dir``; readable drafts are
          published to Notion when draft credentials are configured.
        - notion: records live in Notion draft pages only.
        - hybrid: files are primary, full records are also published to
          Notion and read back from there.

    Legacy directories are appended as read-only backends in every mode.
    A Notion mode without draft credentials falls back to local.

    Returns:
        Tuple of (store, publisher or None).
    """
    mode = settings.ai_translations_store
    if mode != "local" and notion_client is None:
        logger.warning(
            "Notion translation store requested without Notion credentials; using local files",
            extra={"mode": mode},
        )
        mode = "local"

    local = LocalFileTranslationBackend(settings.ai_translations_dir)
    legacy = [LocalFileTranslationBackend(d) for d in settings.legacy_translation_dirs]

    backends: list[TranslationBackend]
    publisher: TranslationPublisher | None = None
    if mode == "notion":
        assert notion_client is not None
        backends = [NotionTranslationBackend(notion_client, settings.notion_translation_parent_page_id)]
    elif mode == "hybrid":
        assert notion_client is not None
        remote = NotionTranslationBackend(notion_client, settings.notion_translation_parent_page_id)
        backends = [local, remote]
        publisher = remote
    else:
        backends = [local]
        if notion_client is not None:
            publisher = NotionDraftPublisher(
                notion_client, settings.notion_translation_parent_page_id
            )

    logger.info(
        "Translation store configured",
        extra={"mode": mode, "backends": [b.name for b in backends + legacy]},
    )
    return TranslationStore(backends + legacy), publisher


def create_sync_service(
    settings: Settings,
    kv_store: KVStore | None = None,
    content_source: ContentSource | None = None,
    *,
    notion_client: NotionClient | None = None,
    force: bool = False,
    read_only: bool = False,
) -> TranslationSyncService:
    """
    Build the translation sync service.

    Args:
        settings: Application settings.
        kv_store: Store receiving the last sync report.
        content_source: Source override; defaults to the Notion database.
        notion_client: Client for Notion drafts and the Notion store. The
            caller owns it and closes it; without one nothing is sent to
            Notion.
        force: Generate even when ``ai_translations_disabled`` is set.
        read_only: Never generate; serve stored translations only. Used by
            processes that leave generation to the worker and the CLI.

    Returns:
        Configured TranslationSyncService.
    """
    source = content_source or create_content_source(settings)
    store, publisher = create_translation_store(settings, notion_client)

    provider = create_translation_provider(settings)
    translator = (
        PostTranslator(provider, source, batch_size=settings.ai_translation_batch_size)
        if provider is not None and not read_only
        else None
    )

    return TranslationSyncService(
        store,
        translator,
        publisher=publisher,
        kv_store=kv_store,
        disabled=read_only or (settings.ai_translations_disabled and not force),
        include_untagged_as_source=settings.ai_translation_include_untagged,
    )
