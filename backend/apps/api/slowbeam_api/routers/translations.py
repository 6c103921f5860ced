"""
Translations router.

Exposes the report of the most recent translation sync.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from slowbeam_core.errors import KVStoreError
from slowbeam_core.kv_keys import KVKeys
from slowbeam_core.kv_store import KVStore
from slowbeam_core.schemas import SyncReport

from ..dependencies import get_kv_store

router = APIRouter()


@router.get("/last-sync")
async def get_last_sync(
    kv_store: Annotated[KVStore, Depends(get_kv_store)],
) -> SyncReport:
    """
    Get the report of the last translation sync.

    Raises:
        HTTPException: If no readable report has been recorded.
    """
    try:
        raw = await kv_store.get(KVKeys.AI_TRANSLATION_LAST_SYNC)
    except KVStoreError:
        raw = None
    if not raw:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No sync recorded")
    try:
        return SyncReport.model_validate_json(raw)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Sync report unreadable"
        ) from None
