"""
Charger endpoints.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from chargeguard.api.deps import get_charger_store
from chargeguard.api.models import Charger, ChargerListResponse, ChargerStatusEnum
from chargeguard.api.store import NotFoundError

router = APIRouter(prefix="/api/chargers", tags=["chargers"])


@router.get("", response_model=ChargerListResponse)
async def list_chargers(status: Optional[ChargerStatusEnum] = Query(None)):
    chargers = get_charger_store().list(status=status.value if status else None)
    return ChargerListResponse(chargers=chargers)


@router.get("/{charger_id}", response_model=Charger)
async def get_charger(charger_id: str):
    try:
        return get_charger_store().get(charger_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Charger {charger_id} not found")
