"""
Charging session endpoints: list, start (with a background security check)
and stop/pause/resume.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query

from chargeguard.api.deps import get_api_config, get_session_store, get_threat_service
from chargeguard.api.models import (
    SessionListResponse,
    SessionMutationResponse,
    SessionStatusEnum,
    StartSessionRequest,
)
from chargeguard.api.store import ChargerBusyError, InvalidActionError, NotFoundError

router = APIRouter(prefix="/api/charging-sessions", tags=["charging-sessions"])
logger = logging.getLogger(__name__)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    user_id: Optional[str] = Query(None, alias="userId"),
    charger_id: Optional[str] = Query(None, alias="chargerId"),
    status: Optional[SessionStatusEnum] = Query(None),
):
    """Sessions by start time, most recent first."""
    sessions = get_session_store().list(
        user_id=user_id,
        charger_id=charger_id,
        status=status.value if status else None,
    )
    return SessionListResponse(sessions=sessions, total=len(sessions))


@router.post("", response_model=SessionMutationResponse)
async def start_session(request: StartSessionRequest, background_tasks: BackgroundTasks):
    """Open a session on a free charger and schedule its security check."""
    sessions = get_session_store()
    try:
        session = sessions.start(
            user_id=request.user_id,
            charger_id=request.charger_id,
            vehicle_id=request.vehicle_id,
            payment_method=request.payment_method,
            max_power=request.max_power,
        )
    except ChargerBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if get_api_config().security_check_enabled:
        background_tasks.add_task(get_threat_service().security_check, session["id"], sessions)

    return SessionMutationResponse(success=True, session=session)


@router.put("", response_model=SessionMutationResponse)
async def update_session(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    action: Optional[str] = Query(None),
):
    """Apply stop, pause or resume to a session."""
    if not session_id or not action:
        raise HTTPException(status_code=400, detail="Session ID and action are required")

    try:
        session = get_session_store().apply_action(
            session_id, action, price_per_kwh=get_api_config().price_per_kwh,
        )
    except InvalidActionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

    return SessionMutationResponse(success=True, session=session)
