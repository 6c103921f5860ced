"""
Pydantic schemas for posts, translations and API responses.
"""

from .post import PostAuthor, PostDate, PostDetailResponse, PostListResponse, PostRecord
from .translation import SyncReport, TextSegment, TranslationRecord
from .visitor import VisitorStats

__all__ = [
    "PostAuthor",
    "PostDate",
    "PostRecord",
    "PostListResponse",
    "PostDetailResponse",
    "TextSegment",
    "TranslationRecord",
    "SyncReport",
    "VisitorStats",
]
