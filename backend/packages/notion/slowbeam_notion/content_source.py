"""
Notion content source.

Reads the blog database and page bodies through Notion's page-chunk API,
the same API the site renderer uses. Private workspaces need the
``token_v2`` cookie; public pages work without it.
"""

import re
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from slowbeam_core import get_logger
from slowbeam_core.errors import ContentSourceError
from slowbeam_core.record_map import block_value
from slowbeam_core.schemas.post import PostRecord
from slowbeam_core.services.content_source import ContentSource

from .properties import get_page_properties

logger = get_logger(__name__)

NOTION_API_BASE = "https://www.notion.so/api/v3"
PAGE_CHUNK_LIMIT = 100
MAX_PAGE_CHUNKS = 50
QUERY_LIMIT = 999

COLLECTION_PAGE_TYPES = ("collection_view_page", "collection_view")

_HEX_ID = re.compile(r"^[0-9a-fA-F]{32}$")
_MIN_DATETIME = datetime.min.replace(tzinfo=timezone.utc)


def id_to_uuid(page_id: str) -> str:
    """Format a 32-character Notion id as a dashed UUID; other ids pass through."""
    compact = page_id.strip().replace("-", "")
    if not _HEX_ID.match(compact):
        return page_id.strip()
    return (
        f"{compact[0:8]}-{compact[8:12]}-{compact[12:16]}-{compact[16:20]}-{compact[20:32]}"
    ).lower()


def merge_record_maps(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge ``source`` tables (block, collection, ...) into ``target`` in place."""
    for table, entries in source.items():
        if isinstance(entries, dict):
            target.setdefault(table, {}).update(entries)
    return target


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def post_sort_key(post: PostRecord) -> datetime:
    """Publication date, else creation time, else the minimum datetime."""
    start = post.date.start_date if post.date else None
    return _parse_timestamp(start) or _parse_timestamp(post.created_time) or _MIN_DATETIME


class NotionContentSource(ContentSource):
    """Content source backed by a Notion database page."""

    def __init__(
        self,
        page_id: str,
        token: str = "",
        timeout: float = 30.0,
        api_base: str = NOTION_API_BASE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.page_id = page_id.strip()
        self.token = token
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        cookies = {"token_v2": self.token} if self.token else None
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            cookies=cookies,
            headers={"Content-Type": "application/json"},
        )

    async def _post(self, client: httpx.AsyncClient, endpoint: str, body: dict[str, Any]) -> Any:
        response = await client.post(f"{self.api_base}/{endpoint}", json=body)
        response.raise_for_status()
        return response.json()

    async def _load_page(self, client: httpx.AsyncClient, page_id: str) -> dict[str, Any]:
        record_map: dict[str, Any] = {}
        cursor: dict[str, Any] = {"stack": []}

        for chunk_number in range(MAX_PAGE_CHUNKS):
            data = await self._post(
                client,
                "loadPageChunk",
                {
                    "pageId": id_to_uuid(page_id),
                    "limit": PAGE_CHUNK_LIMIT,
                    "cursor": cursor,
                    "chunkNumber": chunk_number,
                    "verticalColumns": False,
                },
            )
            merge_record_maps(record_map, data.get("recordMap") or {})
            cursor = data.get("cursor") or {}
            if not cursor.get("stack"):
                break
        else:
            logger.warning("Page chunk limit reached", extra={"page_id": page_id})

        return record_map

    async def get_record_map(self, page_id: str) -> dict[str, Any]:
        try:
            async with self._client() as client:
                record_map = await self._load_page(client, page_id)
        except (httpx.HTTPError, ValueError) as e:
            raise ContentSourceError(f"Failed to load page {page_id}: {e}") from e

        if not record_map.get("block"):
            raise ContentSourceError(f"Page {page_id} returned no blocks")
        return record_map

    async def _query_collection(
        self,
        client: httpx.AsyncClient,
        collection_id: str,
        view_id: str,
    ) -> tuple[list[str], dict[str, Any]]:
        data = await self._post(
            client,
            "queryCollection",
            {
                "collection": {"id": collection_id},
                "collectionView": {"id": view_id},
                "loader": {
                    "type": "reducer",
                    "reducers": {
                        "collection_group_results": {"type": "results", "limit": QUERY_LIMIT}
                    },
                    "searchQuery": "",
                    "userTimeZone": "UTC",
                },
            },
        )
        results = (
            data.get("result", {}).get("reducerResults", {}).get("collection_group_results", {})
        )
        return list(results.get("blockIds") or []), data.get("recordMap") or {}

    async def _fetch_posts(self) -> list[PostRecord]:
        root_id = id_to_uuid(self.page_id)

        async with self._client() as client:
            record_map = await self._load_page(client, root_id)
            root = block_value(record_map.get("block", {}).get(root_id))
            if root is None or root.get("type") not in COLLECTION_PAGE_TYPES:
                logger.error(
                    "Notion page is not a database",
                    extra={"page_id": self.page_id, "type": (root or {}).get("type")},
                )
                return []

            collection_id = root.get("collection_id")
            view_ids = root.get("view_ids") or []
            if not collection_id or not view_ids:
                logger.error("Notion database has no collection", extra={"page_id": self.page_id})
                return []

            block_ids, query_map = await self._query_collection(client, collection_id, view_ids[0])
            merge_record_maps(record_map, query_map)

        collection = block_value(record_map.get("collection", {}).get(collection_id)) or {}
        schema = collection.get("schema") or {}
        blocks = record_map.get("block", {})

        posts: list[PostRecord] = []
        for block_id in block_ids:
            value = block_value(blocks.get(block_id))
            if value is None:
                continue
            data = get_page_properties(value, schema)
            data["id"] = block_id
            created = value.get("created_time")
            if isinstance(created, (int, float)):
                data["createdTime"] = datetime.fromtimestamp(
                    created / 1000, tz=timezone.utc
                ).isoformat()
            data["fullWidth"] = bool((value.get("format") or {}).get("page_full_width"))
            try:
                posts.append(PostRecord.model_validate(data))
            except ValidationError:
                logger.warning("Skipping malformed post row", extra={"block_id": block_id})

        posts.sort(key=post_sort_key, reverse=True)
        return posts

    async def list_posts(self) -> list[PostRecord]:
        if not self.page_id:
            logger.error("NOTION_PAGE_ID is not configured; no posts to load")
            return []

        try:
            posts = await self._fetch_posts()
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError):
            logger.exception("Failed to load posts from Notion", extra={"page_id": self.page_id})
            return []

        logger.info("Loaded posts from Notion", extra={"count": len(posts)})
        return posts
