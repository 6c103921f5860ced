"""
Posts router.

Serves the merged post feed and post details with their block trees.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from slowbeam_core.errors import ContentSourceError
from slowbeam_core.schemas import PostDetailResponse, PostListResponse
from slowbeam_core.services import PostService

from ..dependencies import get_post_service

router = APIRouter()


@router.get("")
async def list_posts(
    post_service: Annotated[PostService, Depends(get_post_service)],
    lang: str | None = Query(None, max_length=16),
) -> PostListResponse:
    """
    Get the merged post feed.

    Args:
        post_service: Post service.
        lang: Optional language to pick variants for.

    Returns:
        Merged post list.
    """
    return await post_service.get_posts(lang)


@router.get("/{slug}")
async def get_post(
    slug: str,
    post_service: Annotated[PostService, Depends(get_post_service)],
    lang: str | None = Query(None, max_length=16),
) -> PostDetailResponse:
    """
    Get a post with the block tree of the requested language variant.

    Args:
        slug: Post slug.
        post_service: Post service.
        lang: Requested language.

    Returns:
        Post detail.

    Raises:
        HTTPException: If the post is not found or its content cannot be loaded.
    """
    try:
        return await post_service.get_post(slug, lang)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from None
    except ContentSourceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from None
