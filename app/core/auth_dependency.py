import logging

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.security import decode_access_token
from app.db.session import SessionLocal
from app.db.models.user import User
from app.services.role_service import has_permission

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    """Get current user id from the JWT subject."""
    payload = decode_access_token(token)
    # Reset-link tokens share the signing key but are not sessions
    if payload is None or payload.get("purpose"):
        raise HTTPException(status_code=401, detail="Invalid token")

    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")


def get_current_user_obj(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> User:
    """Get current live, active User object from JWT token."""
    user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    if not user:
        raise HTTPException(
            status_code=404,
            detail="User not found"
        )
    if (user.status or "").lower() != "active":
        raise HTTPException(status_code=403, detail="User is inactive, contact admin")
    return user


def require_permission(permission: str):
    """
    Dependency factory: the current user must hold `permission` (admins always pass).

    Usage:
        user: User = Depends(require_permission("subscription_add"))
    """
    def dependency(user: User = Depends(get_current_user_obj)) -> User:
        if not has_permission(user, permission):
            logger.warning(f"Permission denied: user_id={user.id}, permission={permission}")
            raise HTTPException(status_code=403, detail="Access denied: insufficient permission")
        return user

    return dependency
