"""
REST endpoints for the live engagement session.
"""
from fastapi import APIRouter, HTTPException
import logging

from core.config import Settings
from core.models import ListeningRequest, MetricsSnapshot, SessionStatus, TimelineResponse, TimelineSummary
from core.session import EngagementSession

router = APIRouter(prefix="/session")
settings = Settings()
session = EngagementSession(settings)
logger = logging.getLogger(__name__)


@router.post("/start")
def session_start():
    """
    Activate capture, estimators, smoothing and timeline recording.

    Returns:
        dict: {"status": "started" | "already_running"}
    """
    if session.active:
        return {"status": "already_running"}
    logger.debug("[api] /session/start")
    session.set_active(True)
    return {"status": "started"}


@router.post("/stop")
def session_stop():
    """
    Deactivate the session; the last metrics and the timeline are kept.
    """
    if not session.active:
        return {"status": "not_running"}
    logger.debug("[api] /session/stop")
    session.set_active(False)
    return {"status": "stopped"}


@router.post("/reset")
async def session_reset():
    session.reset()
    return {"status": "reset"}


@router.post("/listening")
async def session_listening(body: ListeningRequest):
    session.set_listening(body.listening)
    return {"listening": session.listening}


@router.get("/status", response_model=SessionStatus)
async def session_status():
    return session.status()


@router.get("/metrics", response_model=MetricsSnapshot)
async def session_metrics():
    return session.metrics


@router.get("/timeline", response_model=TimelineResponse)
async def session_timeline(last: int | None = None):
    """
    Recorded snapshots, oldest first.

    Args:
        last: Optional count; only the most recent `last` entries are returned.
    """
    if last is not None:
        if last < 0:
            raise HTTPException(status_code=400, detail="last must be >= 0")
        return TimelineResponse(entries=session.recent(last))
    return TimelineResponse(entries=list(session.timeline))


@router.get("/summary", response_model=TimelineSummary)
async def session_summary():
    summary = session.summary()
    if summary is None:
        raise HTTPException(status_code=404, detail="timeline is empty")
    return summary
