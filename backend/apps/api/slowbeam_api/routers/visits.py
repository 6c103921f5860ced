"""
Visits router.

Visitor counters backed by the key-value store.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from slowbeam_core import get_logger
from slowbeam_core.errors import KVStoreError
from slowbeam_core.schemas import VisitorStats
from slowbeam_core.services import VisitorService

from ..dependencies import get_visitor_service

logger = get_logger(__name__)

router = APIRouter()


@router.get("")
async def get_visits(
    visitor_service: Annotated[VisitorService, Depends(get_visitor_service)],
) -> VisitorStats:
    """Get total and today's visit counts."""
    try:
        return await visitor_service.get_stats()
    except KVStoreError as e:
        logger.warning("Failed to read visitor stats", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Visitor stats unavailable"
        ) from None


@router.post("")
async def record_visit(
    visitor_service: Annotated[VisitorService, Depends(get_visitor_service)],
) -> VisitorStats:
    """Count a visit and return the updated counters."""
    try:
        return await visitor_service.record_visit()
    except KVStoreError as e:
        logger.warning("Failed to record visit", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Visitor stats unavailable"
        ) from None
