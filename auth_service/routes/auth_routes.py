"""
Authentication routes, mounted by the application under /api/v1/auth.
"""
from datetime import datetime, timedelta
from typing import Optional
import logging
import uuid

import jwt
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
    check_login_rate_limit,
)
from ..config import settings
from ..db import get_db
from ..models import User, PasswordResetToken
from ..schemas import (
    UserCreate,
    UserLogin,
    UserResponse,
    Token,
    RegistrationResponse,
    PasswordResetRequest,
    PasswordResetConfirm,
    MessageResponse,
)
from ..utils.event_logger import log_auth_event

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> User:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    token = authorization.split(" ", 1)[1].strip()
    try:
        username = decode_access_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired") from exc
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    return user


@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, request: Request, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")
    if db.query(User).filter(User.username == payload.username).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")

    new_user = User(
        username=payload.username,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        password=hash_password(payload.password),
    )
    try:
        db.add(new_user)
        db.commit()
        db.refresh(new_user)
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same email or username
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email or username already exists"
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Registration error for user %s: %s", payload.username, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register user"
        ) from e

    log_auth_event("register", new_user, request, db)

    return RegistrationResponse(
        access_token=create_access_token(new_user.username),
        user=UserResponse.model_validate(new_user),
    )


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    is_rate_limited, minutes_until_reset = check_login_rate_limit(user.id, db)
    if is_rate_limited:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many failed attempts. Try again in {minutes_until_reset} minute{'s' if minutes_until_reset != 1 else ''}"
        )

    if not verify_password(credentials.password, user.password):
        log_auth_event("login_failure", user, request, db)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    log_auth_event("login_success", user, request, db)
    return Token(access_token=create_access_token(user.username))


@router.get("/me", response_model=UserResponse)
def read_me(user: User = Depends(get_current_user)):
    return user


# ---------------- Password Reset Flow ----------------

@router.post("/password-reset/request", response_model=MessageResponse)
def password_reset_request(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    # Generic response to prevent user enumeration
    generic_msg = MessageResponse(message="If the account exists, a reset link has been sent.")

    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        return generic_msg

    token = str(uuid.uuid4())
    expires_at = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    db.add(PasswordResetToken(token=token, user_id=user.id, expires_at=expires_at, used=False))
    db.commit()

    # No mail transport: the token is delivered through the service log
    logger.info("Password reset token for %s: %s (expires %s UTC)", user.email, token, expires_at.isoformat())

    return generic_msg


@router.post("/password-reset/confirm", response_model=MessageResponse)
def password_reset_confirm(payload: PasswordResetConfirm, request: Request, db: Session = Depends(get_db)):
    prt = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.token == payload.token)
        .first()
    )
    if not prt or prt.used or prt.expires_at < datetime.utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired token")

    user = prt.user
    user.password = hash_password(payload.new_password)
    prt.used = True
    db.add(user)
    db.add(prt)
    db.commit()

    log_auth_event("password_reset", user, request, db)

    return MessageResponse(message="Password updated successfully")
