"""
Threat detection endpoints: model info and on-demand scoring of telemetry.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from chargeguard.api.deps import get_threat_service
from chargeguard.api.models import (
    ModelInfoResponse,
    ThreatDetectionRequest,
    ThreatDetectionResponse,
)
from chargeguard.ml.threat.telemetry import InvalidTelemetryError

router = APIRouter(prefix="/api/ml/threat-detection", tags=["threat-detection"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ModelInfoResponse)
async def model_info():
    """Report that the detector is up and which model version it runs."""
    return ModelInfoResponse(**get_threat_service().model_info())


@router.post("", response_model=ThreatDetectionResponse)
async def detect_threat(request: ThreatDetectionRequest):
    """Score one telemetry snapshot and raise an incident if it crosses the threshold."""
    service = get_threat_service()
    try:
        result = service.detect(
            request.to_sample(),
            charger_id=request.charger_id,
            processed_data=request.model_dump(by_alias=True),
        )
    except InvalidTelemetryError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return result
