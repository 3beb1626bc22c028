from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import Optional
import logging
import jwt
from sqlalchemy.orm import Session

from .config import settings

logger = logging.getLogger(__name__)

# Use pbkdf2_sha256 to avoid external bcrypt backend issues in some environments
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(username: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": username, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Decode a bearer token and return its subject.

    Raises:
        jwt.PyJWTError: If the token is malformed, expired or has no subject
    """
    data = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    username = data.get("sub")
    if not username:
        raise jwt.InvalidTokenError("Token has no subject")
    return username


def check_login_rate_limit(user_id: int, db: Session) -> tuple[bool, int]:
    """
    Check if user has exceeded the failed login limit.

    Failures are counted inside the lockout window, starting after the
    user's most recent successful login.

    Args:
        user_id: The user's ID
        db: Database session

    Returns:
        Tuple of (is_rate_limited, minutes_until_reset)
        - is_rate_limited: True if LOGIN_MAX_FAILURES failures fall in the window
        - minutes_until_reset: Minutes until rate limit resets (0 if not limited)
    """
    from .models import AuthEvent

    now = datetime.utcnow()
    window = timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)
    window_start = now - window

    last_success = db.query(AuthEvent.timestamp).filter(
        AuthEvent.user_id == user_id,
        AuthEvent.event_type == "login_success"
    ).order_by(AuthEvent.timestamp.desc()).first()
    if last_success is not None and last_success[0] > window_start:
        window_start = last_success[0]

    failed_attempts = db.query(AuthEvent).filter(
        AuthEvent.user_id == user_id,
        AuthEvent.event_type == "login_failure",
        AuthEvent.timestamp > window_start
    ).order_by(AuthEvent.timestamp.asc()).all()

    if len(failed_attempts) >= settings.LOGIN_MAX_FAILURES:
        # The window reopens once the oldest counted failure ages out
        reset_time = failed_attempts[0].timestamp + window
        minutes_until_reset = max(0, int((reset_time - now).total_seconds() / 60) + 1)

        logger.warning(
            "Login rate limit exceeded: user_id=%s failed_attempts=%s minutes_until_reset=%s",
            user_id, len(failed_attempts), minutes_until_reset
        )
        return True, minutes_until_reset

    return False, 0
