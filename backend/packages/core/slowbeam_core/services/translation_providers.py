"""
Translation provider abstraction.

A provider sends one batch of strings to an external translation service
and returns whatever the service produced for it. Cardinality checks,
deduplication and chunking live in the post translator; providers only
guarantee request/response index correspondence for what they return.

OpenAI is the configured backend. No API key means no provider: the sync
then serves stored translations only.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from slowbeam_core import get_logger
from slowbeam_core.config import Settings
from slowbeam_core.errors import TranslationProviderError

logger = get_logger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

_LANGUAGE_NAMES: dict[str, str] = {
    "ko": "Korean",
    "en": "English",
}


def _describe(lang: str) -> str:
    if lang == "auto":
        return "the source language"
    return _LANGUAGE_NAMES.get(lang, lang)


class TranslationProvider(ABC):
    """Base class for translation providers."""

    model: str = ""

    @abstractmethod
    async def translate_batch(
        self, texts: list[str], source: str, target: str
    ) -> list[str | None]:
        """
        Translate a list of texts in one request.

        Entry ``i`` of the result corresponds to ``texts[i]``. The result may
        be shorter or longer than the request when the service misbehaves;
        unusable entries are returned as None.
        """


class OpenAIProvider(TranslationProvider):
    """OpenAI chat-completions translation provider."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout

    def _messages(self, texts: list[str], source: str, target: str) -> list[dict[str, str]]:
        return [
            {
                "role": "system",
                "content": (
                    f"You are a professional technical translator. Translate "
                    f"{_describe(source)} into natural {_describe(target)} while "
                    f"preserving markdown, inline code and punctuation. "
                    f"Return only valid JSON."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Translate each entry of this JSON array into {_describe(target)}. "
                    f"Do not wrap the response in Markdown fences. Return a JSON object "
                    f'with a "translations" array that mirrors the input length. '
                    f"Input: {json.dumps(texts, ensure_ascii=False)}"
                ),
            },
        ]

    @staticmethod
    def _extract_batch(content: Any) -> list[str | None]:
        if not isinstance(content, str):
            raise TranslationProviderError("Unexpected OpenAI response format")
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise TranslationProviderError(f"Failed to parse OpenAI response: {e}") from e

        items = parsed.get("translations") if isinstance(parsed, dict) else None
        if not isinstance(items, list):
            raise TranslationProviderError("OpenAI response has no translations array")

        return [item if isinstance(item, str) and item.strip() else None for item in items]

    async def translate_batch(
        self, texts: list[str], source: str, target: str
    ) -> list[str | None]:
        from openai import AsyncOpenAI

        if not texts:
            return []

        client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url or None,
            timeout=self.timeout,
        )
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=self._messages(texts, source, target),  # type: ignore[arg-type]
                temperature=0,
                response_format={"type": "json_object"},
            )
        finally:
            await client.close()

        if not response.choices:
            raise TranslationProviderError("OpenAI response has no choices")
        return self._extract_batch(response.choices[0].message.content)


def create_translation_provider(settings: Settings) -> TranslationProvider | None:
    """
    Create the translation provider from settings.

    Settings used:
        - openai_api_key: Required; without it no provider is created.
        - openai_model: Model override (default: "gpt-4o-mini").
        - openai_base_url: Optional API base URL.
        - ai_translation_timeout: Per-request timeout in seconds.

    Returns:
        Provider instance, or None when no credential is configured.
    """
    api_key = settings.openai_api_key.strip()
    if not api_key:
        return None

    model = settings.openai_model.strip() or DEFAULT_OPENAI_MODEL
    logger.info("Using OpenAI translation provider", extra={"model": model})
    return OpenAIProvider(
        api_key,
        model=model,
        base_url=settings.openai_base_url or None,
        timeout=settings.ai_translation_timeout,
    )
