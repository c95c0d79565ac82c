"""
Password reset through a signed, time-limited link.

The reset token is a JWT carrying the user id and a fingerprint of the
current password hash, so it stops working once the password changes.
"""
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import (
    ALGORITHM,
    FRONTEND_URL,
    RESET_TOKEN_SECRET,
    RESET_TOKEN_EXPIRE_MINUTES,
)
from app.core.security import hash_password
from app.db.models.user import User
from app.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

RESET_PURPOSE = "password_reset"


class InvalidResetTokenError(Exception):
    """Raised when a reset token is malformed, expired or already used."""


def _fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def create_reset_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user.id),
        "purpose": RESET_PURPOSE,
        "fp": _fingerprint(user.password_hash),
        "exp": expire,
    }
    return jwt.encode(payload, RESET_TOKEN_SECRET, algorithm=ALGORITHM)


def reset_link(token: str) -> str:
    return f"{FRONTEND_URL.rstrip('/')}/reset-password?token={token}"


def request_password_reset(db: Session, email: str, dispatcher: NotificationDispatcher) -> bool:
    """
    Email a reset link when the address belongs to an active user.

    Returns:
        True if a link was sent. Callers respond identically either way.

    Raises:
        NotificationError: If the email could not be delivered
    """
    user = (
        db.query(User)
        .filter(func.lower(User.email) == email.lower(), User.deleted_at.is_(None))
        .first()
    )
    if not user or (user.status or "").lower() != "active":
        logger.info("Password reset requested for unknown or inactive account")
        return False

    token = create_reset_token(user)
    dispatcher.send_password_reset(user.email, user.first_name, reset_link(token))
    logger.info(f"Password reset link sent: user_id={user.id}")
    return True


def reset_password(db: Session, token: str, new_password: str) -> User:
    try:
        payload = jwt.decode(token, RESET_TOKEN_SECRET, algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidResetTokenError("Invalid or expired token") from e

    if payload.get("purpose") != RESET_PURPOSE:
        raise InvalidResetTokenError("Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise InvalidResetTokenError("Invalid or expired token")

    user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    if not user or payload.get("fp") != _fingerprint(user.password_hash):
        raise InvalidResetTokenError("Invalid or expired token")

    user.password_hash = hash_password(new_password)
    user.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"Password reset: user_id={user.id}")
    return user
