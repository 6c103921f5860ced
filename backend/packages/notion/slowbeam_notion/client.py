"""
Notion official API client.

Thin async wrapper over the public REST API used to publish translation
drafts. Rate limits and transient server errors are retried with
exponential backoff, honoring ``Retry-After``.
"""

import asyncio
from typing import Any

import httpx

from slowbeam_core import get_logger
from slowbeam_core.errors import SlowbeamError

logger = get_logger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_API_VERSION = "2022-06-28"

# Maximum children per append request
MAX_APPEND_CHILDREN = 100
# Maximum characters per rich-text object
MAX_RICH_TEXT_LENGTH = 2000

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class NotionAPIError(SlowbeamError):
    """Notion API request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def chunks(items: list[Any], size: int) -> list[list[Any]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def plain_text(rich_text: Any) -> str:
    """Concatenate the text of an official-API rich-text array."""
    if not isinstance(rich_text, list):
        return ""
    parts: list[str] = []
    for item in rich_text:
        if not isinstance(item, dict):
            continue
        text = item.get("plain_text")
        if text is None:
            text = (item.get("text") or {}).get("content", "")
        parts.append(text)
    return "".join(parts)


class NotionClient:
    """Async client for the Notion public API."""

    def __init__(
        self,
        token: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        base_url: str = NOTION_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Notion-Version": NOTION_API_VERSION,
            "Content-Type": "application/json",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Send one API request.

        Args:
            method: HTTP method.
            path: Path below the API root, e.g. "/pages".
            json: Optional JSON body.
            params: Optional query parameters.

        Returns:
            Decoded JSON response.

        Raises:
            NotionAPIError: On a non-retryable error or when retries run out.
        """
        client = self._get_client()
        backoff = 1.0

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.request(method, path, json=json, params=params)
            except httpx.TimeoutException as e:
                if attempt < self.max_retries:
                    logger.info(
                        "Retrying Notion request after timeout",
                        extra={"path": path, "attempt": attempt + 1},
                    )
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * 2, 8.0)
                    continue
                raise NotionAPIError(f"Notion API timeout: {method} {path}") from e
            except httpx.HTTPError as e:
                raise NotionAPIError(f"Notion API request failed: {e}") from e

            if response.status_code in RETRYABLE_STATUS and attempt < self.max_retries:
                retry_after = response.headers.get("Retry-After", "")
                delay = float(retry_after) if retry_after.isdigit() else backoff
                logger.info(
                    "Retrying Notion request",
                    extra={"path": path, "status": response.status_code, "attempt": attempt + 1},
                )
                await asyncio.sleep(delay)
                backoff = min(backoff * 2, 8.0)
                continue

            if response.is_error:
                raise NotionAPIError(
                    f"Notion API error: HTTP {response.status_code}: {response.text}",
                    status_code=response.status_code,
                )
            return response.json()

        raise NotionAPIError(f"Notion API retries exhausted: {method} {path}")

    async def create_page(
        self, parent_page_id: str, title: str, children: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Create a child page; children beyond the first request are appended."""
        first, rest = children[:MAX_APPEND_CHILDREN], children[MAX_APPEND_CHILDREN:]
        page = await self.request(
            "POST",
            "/pages",
            json={
                "parent": {"page_id": parent_page_id},
                "properties": {"title": {"title": [{"text": {"content": title}}]}},
                "children": first,
            },
        )
        if rest:
            await self.append_children(page["id"], rest)
        return page

    async def update_page_title(self, page_id: str, title: str) -> dict[str, Any]:
        return await self.request(
            "PATCH",
            f"/pages/{page_id}",
            json={"properties": {"title": {"title": [{"text": {"content": title}}]}}},
        )

    async def list_children(self, block_id: str) -> list[dict[str, Any]]:
        """List every direct child block, following pagination."""
        results: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"page_size": 100}
            if cursor:
                params["start_cursor"] = cursor
            data = await self.request("GET", f"/blocks/{block_id}/children", params=params)
            results.extend(data.get("results") or [])
            if not data.get("has_more"):
                return results
            cursor = data.get("next_cursor")

    async def delete_block(self, block_id: str) -> None:
        await self.request("DELETE", f"/blocks/{block_id}")

    async def append_children(self, block_id: str, children: list[dict[str, Any]]) -> None:
        """Append children in requests of at most ``MAX_APPEND_CHILDREN`` blocks."""
        for batch in chunks(children, MAX_APPEND_CHILDREN):
            await self.request("PATCH", f"/blocks/{block_id}/children", json={"children": batch})

    async def replace_children(self, block_id: str, children: list[dict[str, Any]]) -> None:
        for child in await self.list_children(block_id):
            await self.delete_block(child["id"])
        await self.append_children(block_id, children)

    async def find_child_page(self, parent_page_id: str, title: str) -> str | None:
        """Return the id of the parent's child page with ``title``, if any."""
        for child in await self.list_children(parent_page_id):
            if child.get("type") != "child_page" or child.get("archived"):
                continue
            if (child.get("child_page") or {}).get("title") == title:
                return child["id"]
        return None

    async def list_child_pages(self, parent_page_id: str) -> list[tuple[str, str]]:
        """List ``(page_id, title)`` of the parent's child pages."""
        return [
            (child["id"], (child.get("child_page") or {}).get("title", ""))
            for child in await self.list_children(parent_page_id)
            if child.get("type") == "child_page" and not child.get("archived")
        ]
