"""
Service layer.

Translation pipeline, post feed and visitor counter services.
"""

from .content_source import ContentSource
from .post_service import PostService
from .post_translator import PostTranslator
from .sync_service import TranslationPublisher, TranslationSyncService
from .translation_providers import OpenAIProvider, TranslationProvider, create_translation_provider
from .translation_store import LocalFileTranslationBackend, TranslationBackend, TranslationStore
from .visitor_service import VisitorService

__all__ = [
    "ContentSource",
    "PostService",
    "PostTranslator",
    "TranslationSyncService",
    "TranslationPublisher",
    "TranslationProvider",
    "OpenAIProvider",
    "create_translation_provider",
    "TranslationBackend",
    "LocalFileTranslationBackend",
    "TranslationStore",
    "VisitorService",
]
