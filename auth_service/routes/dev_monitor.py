"""
Dev Monitor Router - Development-only endpoints for authentication event inspection.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Request, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..models import AuthEvent

router = APIRouter(prefix="/dev", tags=["dev-monitor"])
logger = logging.getLogger(__name__)

MAX_EVENT_LIMIT = 1000


@router.get("/event-logs")
def get_event_logs(
    request: Request,
    limit: int = 50,
    event_type: Optional[str] = None,
    user_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """
    Get recent authentication events (development only).

    Args:
        limit: Maximum number of events to return (default 50, max 1000)
        event_type: Filter by event type (optional)
        user_id: Filter by user ID (optional)

    Returns:
        List of authentication events as dictionaries, newest first

    Raises:
        404: If DEV_MODE is not enabled
        400: If limit is below 1 or exceeds 1000
    """
    client_host = request.client.host if request.client else "unknown"

    if not settings.DEV_MODE:
        logger.warning("Attempt to access /dev/event-logs with DEV_MODE disabled from IP %s", client_host)
        raise HTTPException(status_code=404, detail="Not found")

    if limit < 1 or limit > MAX_EVENT_LIMIT:
        raise HTTPException(
            status_code=400,
            detail=f"Limit must be between 1 and {MAX_EVENT_LIMIT} events"
        )

    query = db.query(AuthEvent)
    if event_type:
        query = query.filter(AuthEvent.event_type == event_type)
    if user_id:
        query = query.filter(AuthEvent.user_id == user_id)

    events = query.order_by(AuthEvent.timestamp.desc()).limit(limit).all()

    logger.info(
        "Dev event logs accessed: limit=%s, event_type=%s, user_id=%s, results=%s, ip=%s",
        limit, event_type, user_id, len(events), client_host
    )

    return [event.to_dict() for event in events]
