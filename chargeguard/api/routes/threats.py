"""
Threat incident endpoints: list, fetch and status transitions.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from chargeguard.api.deps import get_threat_store
from chargeguard.api.models import (
    SeverityEnum,
    ThreatIncident,
    ThreatListResponse,
    ThreatStatusEnum,
    ThreatStatusUpdate,
)
from chargeguard.api.store import NotFoundError

router = APIRouter(prefix="/api/threats", tags=["threats"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ThreatListResponse)
async def list_threats(
    status: Optional[ThreatStatusEnum] = Query(None),
    severity: Optional[SeverityEnum] = Query(None),
):
    """All incidents, newest first."""
    threats = get_threat_store().list(
        status=status.value if status else None,
        severity=severity.value if severity else None,
    )
    return ThreatListResponse(threats=threats)


@router.get("/{threat_id}", response_model=ThreatIncident)
async def get_threat(threat_id: str):
    try:
        return get_threat_store().get(threat_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Threat {threat_id} not found")


@router.patch("/{threat_id}", response_model=ThreatIncident)
async def update_threat_status(threat_id: str, update: ThreatStatusUpdate):
    """Move an incident to active, investigating, resolved or ignored."""
    try:
        threat = get_threat_store().update_status(threat_id, update.status.value)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Threat {threat_id} not found")
    logger.info("Threat %s marked %s", threat_id, update.status.value)
    return threat
