"""
Post grouping and language merge.

Groups the language variants of a logical post by slug and folds them into
one primary record carrying the other variants as ``translations``.
"""

from collections.abc import Iterable

from slowbeam_core.errors import PostGroupError
from slowbeam_core.language import extract_post_language, normalize_language_code
from slowbeam_core.schemas.post import PostRecord

FEED_STATUS = ("Public",)
FEED_TYPE = ("Post",)
DETAIL_STATUS = ("Public", "PublicOnDetail")
DETAIL_TYPE = ("Post", "Paper", "Page")


def group_posts_by_slug(posts: Iterable[PostRecord]) -> dict[str, list[PostRecord]]:
    """
    Bucket posts by slug, preserving first-seen order of slugs and members.

    Posts without a slug are dropped.
    """
    grouped: dict[str, list[PostRecord]] = {}
    for post in posts:
        if not post.slug:
            continue
        grouped.setdefault(post.slug, []).append(post)
    return grouped


def merge_posts_by_language(
    posts: Iterable[PostRecord], default_language: str
) -> list[PostRecord]:
    """
    Merge language variants into one record per slug.

    The primary is the first variant in the default language, else the first
    variant seen. The remaining variants (excluding the primary by id) become
    its ``translations``, each stripped of nested translations.

    Args:
        posts: Post records in source order.
        default_language: Site default language tag.

    Returns:
        Merged posts in first-seen slug order.

    Raises:
        PostGroupError: If a slug bucket is empty.
    """
    normalized_default = normalize_language_code(default_language) or default_language
    merged: list[PostRecord] = []

    for slug, group in group_posts_by_slug(posts).items():
        if not group:
            raise PostGroupError(f"Post group cannot be empty: {slug}")

        variants = [post.without_translations() for post in group]
        primary = next(
            (v for v in variants if extract_post_language(v) == normalized_default),
            variants[0],
        )
        translations = [v for v in variants if v.id != primary.id]
        merged.append(primary.model_copy(update={"translations": translations}))

    return merged


def filter_posts(
    posts: Iterable[PostRecord],
    accept_status: Iterable[str] = FEED_STATUS,
    accept_type: Iterable[str] = FEED_TYPE,
) -> list[PostRecord]:
    """Keep posts whose first status and type are accepted."""
    statuses = set(accept_status)
    types = set(accept_type)
    return [
        post
        for post in posts
        if post.title
        and post.slug
        and post.status
        and post.status[0] in statuses
        and post.type
        and post.type[0] in types
    ]
