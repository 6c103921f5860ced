"""
Visitor service.

Counts visits in the key-value store: one all-time counter and one counter
per local day, the latter expiring after the retention window.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from slowbeam_core.kv_keys import KVKeys
from slowbeam_core.kv_store import KVStore
from slowbeam_core.schemas.visitor import VisitorStats


def _to_int(value: object) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


class VisitorService:
    """Visitor counter service."""

    def __init__(self, kv_store: KVStore, timezone: str = "Asia/Seoul") -> None:
        self.kv_store = kv_store
        self.timezone = ZoneInfo(timezone)

    def date_key(self, now: datetime | None = None) -> str:
        """Local date (YYYY-MM-DD) in the visitor timezone."""
        current = now.astimezone(self.timezone) if now else datetime.now(self.timezone)
        return current.strftime("%Y-%m-%d")

    async def record_visit(self, now: datetime | None = None) -> VisitorStats:
        """
        Count one visit.

        Args:
            now: Visit time; defaults to the current time.

        Returns:
            Updated counters.

        Raises:
            KVStoreError: If the store rejects a command.
        """
        date_key = self.date_key(now)
        daily_key = KVKeys.visitors_daily(date_key)
        total, today, _ = await self.kv_store.pipeline(
            [
                ["INCRBY", KVKeys.VISITORS_TOTAL, "1"],
                ["INCRBY", daily_key, "1"],
                ["EXPIRE", daily_key, str(KVKeys.VISITORS_DAILY_TTL)],
            ]
        )
        return VisitorStats(total=_to_int(total), today=_to_int(today), date=date_key)

    async def get_stats(self, now: datetime | None = None) -> VisitorStats:
        """Read the counters without incrementing them."""
        date_key = self.date_key(now)
        total, today = await self.kv_store.mget(
            KVKeys.VISITORS_TOTAL, KVKeys.visitors_daily(date_key)
        )
        return VisitorStats(total=_to_int(total), today=_to_int(today), date=date_key)
