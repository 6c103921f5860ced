"""
Content source interface.

The pipeline reads posts and their block trees through this interface so
the Notion adapter can be swapped for a fake in tests.
"""

from abc import ABC, abstractmethod
from typing import Any

from slowbeam_core.schemas.post import PostRecord


class ContentSource(ABC):
    """Source of post records and record maps."""

    @abstractmethod
    async def list_posts(self) -> list[PostRecord]:
        """
        List every post variant.

        Fails soft: configuration and upstream errors are logged and an
        empty list is returned.
        """

    @abstractmethod
    async def get_record_map(self, page_id: str) -> dict[str, Any]:
        """
        Fetch the record map of one page.

        Raises:
            ContentSourceError: If the page cannot be loaded.
        """
