"""
Key-value store.

Small counters and blobs (visitor stats, last sync report) live in an
Upstash Redis database reached over its REST API. When no endpoint is
configured an in-memory store with the same command semantics is used.

Supported commands: GET, SET, INCRBY, EXPIRE, MGET.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

import httpx

from slowbeam_core import get_logger
from slowbeam_core.config import Settings
from slowbeam_core.errors import KVStoreError

logger = get_logger(__name__)

Command = Sequence[str]


class KVStore(ABC):
    """Base class for key-value stores."""

    @abstractmethod
    async def execute(self, command: Command) -> Any:
        """Run a single command and return its result."""

    async def pipeline(self, commands: Sequence[Command]) -> list[Any]:
        """Run several commands in order. Default: one by one."""
        return [await self.execute(command) for command in commands]

    async def get(self, key: str) -> str | None:
        return await self.execute(["GET", key])

    async def set(self, key: str, value: str) -> Any:
        return await self.execute(["SET", key, value])

    async def incrby(self, key: str, increment: int) -> int:
        return int(await self.execute(["INCRBY", key, str(increment)]))

    async def expire(self, key: str, seconds: int) -> int:
        return int(await self.execute(["EXPIRE", key, str(seconds)]))

    async def mget(self, *keys: str) -> list[str | None]:
        return await self.execute(["MGET", *keys])


class InMemoryKVStore(KVStore):
    """
    Process-local store.

    Expiry is checked lazily: an expired key is removed when it is read.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}

    def reset(self) -> None:
        """Drop all keys."""
        self._values.clear()
        self._expires_at.clear()

    def _read(self, key: str) -> str | None:
        if key not in self._values:
            return None
        expires_at = self._expires_at.get(key)
        if expires_at is not None and expires_at <= self._clock():
            self._values.pop(key, None)
            self._expires_at.pop(key, None)
            return None
        return self._values[key]

    async def execute(self, command: Command) -> Any:
        if not command:
            raise KVStoreError("Empty command")
        action, *args = command
        action = action.upper()

        if action == "GET":
            return self._read(args[0])

        if action == "SET":
            key, value = args[0], args[1]
            self._values[key] = str(value)
            self._expires_at.pop(key, None)
            return "OK"

        if action == "INCRBY":
            key = args[0]
            current = self._read(key)
            try:
                next_value = int(current or 0) + int(args[1])
            except ValueError as e:
                raise KVStoreError("value is not an integer or out of range") from e
            self._values[key] = str(next_value)
            return next_value

        if action == "EXPIRE":
            key = args[0]
            if self._read(key) is None:
                return 0
            self._expires_at[key] = self._clock() + int(args[1])
            return 1

        if action == "MGET":
            return [self._read(key) for key in args]

        raise KVStoreError(f"Unsupported in-memory command: {action}")


def _normalize_result(payload: Any) -> Any:
    """Unwrap Upstash ``{"result": ...}`` envelopes recursively."""
    if isinstance(payload, list):
        return [_normalize_result(item) for item in payload]
    if isinstance(payload, dict) and "result" in payload:
        return _normalize_result(payload["result"])
    return payload


class UpstashKVStore(KVStore):
    """Upstash Redis over its REST API."""

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    async def _post(self, url: str, body: Any) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(url, json=body, headers=self._headers())
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if response.is_error:
            message = payload.get("error") if isinstance(payload, dict) else None
            raise KVStoreError(message or f"KV request failed with HTTP {response.status_code}")
        return payload

    async def execute(self, command: Command) -> Any:
        payload = await self._post(self.url, list(command))
        if isinstance(payload, dict) and payload.get("error"):
            raise KVStoreError(payload["error"])
        return _normalize_result(payload.get("result") if isinstance(payload, dict) else payload)

    async def pipeline(self, commands: Sequence[Command]) -> list[Any]:
        payload = await self._post(f"{self.url}/pipeline", [list(c) for c in commands])
        if isinstance(payload, list):
            for command, entry in zip(commands, payload):
                if isinstance(entry, dict) and entry.get("error"):
                    raise KVStoreError(f"{command[0]} failed: {entry['error']}")
        return _normalize_result(payload)


def create_kv_store(settings: Settings) -> KVStore:
    """Create the configured store, falling back to memory without Upstash credentials."""
    if settings.has_upstash:
        logger.info("Using Upstash key-value store")
        return UpstashKVStore(settings.upstash_redis_rest_url, settings.upstash_redis_rest_token)
    logger.info("Upstash is not configured; using in-memory key-value store")
    return InMemoryKVStore()
