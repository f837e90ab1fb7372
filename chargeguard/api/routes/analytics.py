"""
Dashboard analytics derived from the live stores and prediction log.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter

from chargeguard.api.deps import (
    get_charger_store,
    get_prediction_log,
    get_session_store,
    get_threat_service,
    get_threat_store,
)
from chargeguard.api.models import AnalyticsResponse, DailyStat, MLMetrics, ThreatTypeCount
from chargeguard.api.store import parse_iso

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def _threat_type_counts(threats: list[dict]) -> list[ThreatTypeCount]:
    counts = Counter(t["type"] for t in threats)
    total = len(threats)
    return [
        ThreatTypeCount(
            type=threat_type,
            count=count,
            percentage=round(100.0 * count / total, 1),
        )
        for threat_type, count in counts.most_common()
    ]



def _daily_stats(
    threats: list[dict],
    sessions: list[dict],
    days: int = 7,
    today: Optional[date] = None,
) -> list[DailyStat]:
    """
    Per-day threat and session counts for the last ``days`` UTC days, oldest first.

    A threat counts on the day it was raised and as blocked once resolved.
    A session counts, with its energy, on the day it started.
    """
    today = today or datetime.now(timezone.utc).date()
    window = [today - timedelta(days=i) for i in range(days - 1, -1, -1)]
    stats = {d: {"threats": 0, "blocked": 0, "sessions": 0, "energy": 0.0} for d in window}

    for t in threats:
        day = stats.get(parse_iso(t["timestamp"]).astimezone(timezone.utc).date())
        if day is not None:
            day["threats"] += 1
            day["blocked"] += int(t["status"] == "resolved")
    for s in sessions:
        day = stats.get(parse_iso(s["start_time"]).astimezone(timezone.utc).date())
        if day is not None:
            day["sessions"] += 1
            day["energy"] += s["energy_delivered"]

    return [
        DailyStat(
            date=d.isoformat(),
            threats=v["threats"],
            blocked=v["blocked"],
            sessions=v["sessions"],
            energy=round(v["energy"], 2),
        )
        for d, v in stats.items()
    ]

@router.get("", response_model=AnalyticsResponse)
async def analytics():
    """Charger, threat, session and model counters for the dashboard."""
    chargers = get_charger_store().list()
    threats = get_threat_store().list()
    sessions = get_session_store().list()
    stats = get_prediction_log().stats()

    return AnalyticsResponse(
        total_chargers=len(chargers),
        chargers_by_status=dict(Counter(c["status"] for c in chargers)),
        total_threats=len(threats),
        active_threats=sum(1 for t in threats if t["status"] == "active"),
        threats_by_severity=dict(Counter(t["severity"] for t in threats)),
        threat_types=_threat_type_counts(threats),
        total_sessions=len(sessions),
        active_sessions=sum(1 for s in sessions if s["status"] == "active"),
        total_energy=round(sum(s["energy_delivered"] for s in sessions), 2),
        revenue=round(sum(s["cost"] for s in sessions), 2),
        ml_metrics=MLMetrics(
            total_predictions=stats["total_predictions"],
            threats_detected=stats["threats_detected"],
            avg_latency_ms=stats["avg_latency_ms"],
            severity_distribution=stats["severity_distribution"],
            model_version=get_threat_service().model_version,
        ),
        daily_stats=_daily_stats(threats, sessions),
    )
