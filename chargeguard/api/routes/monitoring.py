"""
Monitoring endpoints: prediction logs and aggregate stats.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query

from chargeguard.api.deps import get_prediction_log
from chargeguard.api.models import PredictionLogResponse, PredictionStatsResponse

router = APIRouter(prefix="/api/monitoring", tags=["monitoring"])
logger = logging.getLogger(__name__)


@router.get("/predictions", response_model=list[PredictionLogResponse])
async def prediction_history(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """Get paginated prediction log history, newest first."""
    logs = get_prediction_log().list(limit=limit, offset=offset)
    return [PredictionLogResponse(**log) for log in logs]


@router.get("/stats", response_model=PredictionStatsResponse)
async def prediction_stats():
    """Get aggregate prediction statistics (severity distribution, avg latency)."""
    stats = get_prediction_log().stats()
    return PredictionStatsResponse(
        total_predictions=stats["total_predictions"],
        retained=stats["retained"],
        threats_detected=stats["threats_detected"],
        avg_latency_ms=stats["avg_latency_ms"],
        severity_distribution=stats["severity_distribution"],
        threat_type_distribution=stats["threat_type_distribution"],
    )
