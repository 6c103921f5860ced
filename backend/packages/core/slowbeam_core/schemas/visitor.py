"""Visitor statistics schemas."""

from pydantic import BaseModel


class VisitorStats(BaseModel):
    """Total and daily visit counters."""

    total: int = 0
    today: int = 0
    date: str
