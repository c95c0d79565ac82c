"""
Step-up login (password check, emailed one-time code, then JWT) and password reset.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db
from app.core.security import verify_password, create_access_token
from app.db.models.user import User
from app.db.store import UserStore
from app.schemas.auth import (
    LoginRequest,
    VerifyOtpRequest,
    ResendOtpRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from app.schemas.common import ServiceResult
from app.services.notification_service import (
    NotificationDispatcher,
    EmailNotificationDispatcher,
    NotificationError,
)
from app.services.otp_service import OtpManager
from app.services.password_service import (
    InvalidResetTokenError,
    request_password_reset,
    reset_password as reset_user_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_dispatcher() -> NotificationDispatcher:
    return EmailNotificationDispatcher()


def _failure(result: ServiceResult, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.model_dump())


def _deliver(manager: OtpManager, user: User, result: ServiceResult, dispatcher: NotificationDispatcher):
    try:
        dispatcher.send_otp(user.email, user.first_name, result.data["otp"])
    except NotificationError as e:
        # An undeliverable code must not stay pending
        manager.clear(user.id)
        logger.error(f"OTP email failed for user_id={user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to send OTP email. Please try again later."
        )


@router.post("/login")
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Step 1: validate credentials and email a one-time code."""
    user = (
        db.query(User)
        .filter(func.lower(User.email) == payload.email.lower(), User.deleted_at.is_(None))
        .first()
    )
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if (user.status or "").lower() != "active":
        raise HTTPException(status_code=403, detail="Account is inactive")

    manager = OtpManager(UserStore(db))
    result = manager.generate(user.id)
    if not result.success:
        return _failure(result, status.HTTP_404_NOT_FOUND)

    _deliver(manager, user, result, dispatcher)
    logger.info(f"Login step 1 passed, OTP sent: user_id={user.id}")

    return {
        "success": True,
        "message": result.message,
        "data": {"user_id": user.id, "email": user.email, "requires_otp": True},
    }


@router.post("/verify-otp")
def verify_otp(payload: VerifyOtpRequest, db: Session = Depends(get_db)):
    """Step 2: exchange a valid code for an access token."""
    result = OtpManager(UserStore(db)).verify(payload.user_id, payload.otp)
    if not result.success:
        return _failure(result)

    user = db.query(User).filter(User.id == payload.user_id).first()
    token = create_access_token({"sub": str(user.id), "email": user.email})
    logger.info(f"Login complete: user_id={user.id}")

    return {
        "success": True,
        "message": "Login successful",
        "data": {
            "access_token": token,
            "token_type": "bearer",
            "user_id": user.id,
            "email": user.email,
        },
    }


@router.post("/resend-otp")
def resend_otp(
    payload: ResendOtpRequest,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    manager = OtpManager(UserStore(db))
    result = manager.resend(payload.user_id)
    if not result.success:
        if result.data and "wait_seconds" in result.data:
            return _failure(result, status.HTTP_429_TOO_MANY_REQUESTS)
        return _failure(result, status.HTTP_404_NOT_FOUND)

    user = db.query(User).filter(User.id == payload.user_id).first()
    _deliver(manager, user, result, dispatcher)

    return {"success": True, "message": result.message}


@router.post("/forgot-password")
def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Email a reset link. The response does not reveal whether the account exists."""
    try:
        request_password_reset(db, payload.email, dispatcher)
    except NotificationError as e:
        logger.error(f"Password reset email failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to send reset email. Please try again later."
        )

    return {
        "success": True,
        "message": "If the account exists, a password reset link has been sent to your email",
    }


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        reset_user_password(db, payload.token, payload.new_password)
    except InvalidResetTokenError as e:
        return _failure(ServiceResult.fail(str(e)))

    return {"success": True, "message": "Password updated successfully"}
