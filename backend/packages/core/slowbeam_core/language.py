"""
Language tag normalization.

Maps the free-form language tags found on Notion posts ("korean", "ko-KR",
"en-US", ...) onto the site's language codes and picks variants of a merged
post by language.
"""

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from slowbeam_core.schemas.post import PostRecord

SUPPORTED_LANGUAGES = ("ko", "en")
PACKAGE_DEFAULT_LANGUAGE = "ko"

_LANGUAGE_ALIASES: dict[str, str] = {
    "korean": "ko",
    "kor": "ko",
    "ko": "ko",
    "ko-kr": "ko",
    "ko_kr": "ko",
    "ko_kor": "ko",
    "english": "en",
    "eng": "en",
    "en": "en",
    "en-us": "en",
    "en-gb": "en",
}

_REGION_SEPARATOR = re.compile(r"[-_]")


def normalize_language_code(value: str | None) -> str | None:
    """
    Normalize a language tag.

    Known aliases map to a supported code; anything else is lower-cased and
    passed through so callers can treat it as a foreign, non-default language.

    Args:
        value: Raw language tag.

    Returns:
        Normalized code, or None when no tag is given.
    """
    if not value:
        return None
    key = value.strip().lower()
    if not key:
        return None
    return _LANGUAGE_ALIASES.get(key, key)


def derive_default_language(value: str | None) -> str:
    """
    Derive the site default language from a locale string.

    Region-qualified tags fall back to their base language ("en-US" -> "en").

    Args:
        value: Locale string such as "ko-KR".

    Returns:
        Language code, "ko" when nothing resolves.
    """
    if not value or not value.strip():
        return PACKAGE_DEFAULT_LANGUAGE
    key = value.strip().lower()
    if key in _LANGUAGE_ALIASES:
        return _LANGUAGE_ALIASES[key]
    base = _REGION_SEPARATOR.split(key)[0]
    if base in _LANGUAGE_ALIASES:
        return _LANGUAGE_ALIASES[base]
    return normalize_language_code(value) or PACKAGE_DEFAULT_LANGUAGE


def ensure_language_array(value: str | Sequence[str] | None) -> list[str] | None:
    """Coerce a language property to a non-empty list, or None."""
    if not value:
        return None
    if isinstance(value, str):
        return [value] if value.strip() else None
    filtered = [item for item in value if item]
    return filtered or None


def extract_post_language(post: "PostRecord") -> str | None:
    """Return the normalized authoritative (first) language of a post."""
    languages = post.language or []
    return normalize_language_code(languages[0]) if languages else None


def has_language(post: "PostRecord", code: str) -> bool:
    """Check whether any language tag of a post normalizes to ``code``."""
    return any(normalize_language_code(tag) == code for tag in post.language or [])


def available_languages(post: "PostRecord") -> list[str]:
    """List the languages a merged post is available in, primary first."""
    seen: list[str] = []
    for variant in [post, *(post.translations or [])]:
        language = extract_post_language(variant)
        if language and language not in seen:
            seen.append(language)
    return seen


def select_post_by_language(
    post: "PostRecord", language: str | None, fallback_language: str
) -> "PostRecord":
    """
    Pick the variant of a merged post to show for a requested language.

    Preference order: exact language match, then a variant in the fallback
    language (untagged variants count as fallback), then the primary.

    Args:
        post: Merged post with optional translations.
        language: Requested language tag.
        fallback_language: Site default language.

    Returns:
        The selected variant, without nested translations.
    """
    options = [post.without_translations()] + [
        t.without_translations() for t in post.translations or []
    ]
    target = normalize_language_code(language) or fallback_language

    for candidate in options:
        if extract_post_language(candidate) == target:
            return candidate
    for candidate in options:
        if (extract_post_language(candidate) or fallback_language) == fallback_language:
            return candidate
    return options[0]
