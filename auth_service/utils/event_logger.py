"""
Event logger utility for authentication events.
"""
from datetime import datetime
from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from ..models import AuthEvent, User, AUTH_EVENT_TYPES

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> Optional[str]:
    """Return the caller's IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def log_auth_event(
    event_type: str,
    user: User,
    request: Request,
    db: Session,
    metadata: dict = None
) -> None:
    """
    Record an authentication event in the database and the service log.

    Args:
        event_type: One of: register, login_success, login_failure, password_reset
        user: User object from database
        request: FastAPI Request object
        db: Database session
        metadata: Optional dictionary of additional context

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in AUTH_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(AUTH_EVENT_TYPES)}"
        )

    ip_address = client_ip(request)
    user_agent = request.headers.get("user-agent")

    try:
        auth_event = AuthEvent(
            user_id=user.id,
            username=user.username,
            event_type=event_type,
            ip_address=ip_address,
            user_agent=user_agent,
            timestamp=datetime.utcnow(),
            event_metadata=metadata or {}
        )
        db.add(auth_event)
        db.commit()
    except SQLAlchemyError as e:
        # A lost audit record must not break the auth flow
        logger.warning(
            "Failed to log auth event: user_id=%s event_type=%s error=%s",
            user.id, event_type, e
        )
        db.rollback()
        return

    logger.info(
        "AUTH %s user_id=%s username=%s ip=%s",
        event_type, user.id, user.username, ip_address
    )
