"""
User management, current-user profile and role listing.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.routes.auth import get_dispatcher
from app.core.auth_dependency import get_db, get_current_user_obj, require_permission
from app.db.models.user import User
from app.schemas.user import (
    MeOut,
    RoleOut,
    UserCreate,
    UserListResponse,
    UserOut,
    UserStatusUpdate,
    UserUpdate,
)
from app.services import user_service as service
from app.services.notification_service import NotificationDispatcher, NotificationError
from app.services.role_service import list_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])
roles_router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get("/me", response_model=MeOut)
def get_me(user: User = Depends(get_current_user_obj)):
    return service.profile(user)


@router.post("/logout")
def logout(user: User = Depends(get_current_user_obj)):
    """Tokens are stateless; the client discards its token."""
    logger.info(f"User logged out: user_id={user.id}")
    return {"success": True, "message": "Logged out successfully"}


@router.get("", response_model=UserListResponse)
def list_users(
    search: Optional[str] = None,
    column: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Optional[str] = None,
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("user_list")),
):
    return service.list_users(
        db,
        search=search,
        column=column,
        status=status_filter,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("user_list")),
):
    try:
        return service.to_dict(service.get_user(db, user_id))
    except service.UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    user: User = Depends(require_permission("user_add")),
):
    try:
        created, temp_password = service.create_user(db, payload)
    except service.DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except service.InvalidReferenceError as e:
        raise HTTPException(status_code=400, detail=str(e))

    email_sent = True
    try:
        dispatcher.send_welcome(created.email, created.first_name, temp_password)
    except NotificationError as e:
        email_sent = False
        logger.error(f"Welcome email failed for user_id={created.id}: {e}")

    return {
        "success": True,
        "message": "User created successfully",
        "data": {"user": UserOut(**service.to_dict(created)).model_dump(), "email_sent": email_sent},
    }


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("user_edit")),
):
    try:
        return service.to_dict(service.update_user(db, user_id, payload))
    except service.UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except service.DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except service.InvalidReferenceError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{user_id}/status", response_model=UserOut)
def update_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("user_edit")),
):
    if user_id == user.id and payload.status == "Inactive":
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    try:
        return service.to_dict(service.update_user_status(db, user_id, payload.status))
    except service.UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("user_delete")),
):
    if user_id == user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    try:
        service.delete_user(db, user_id)
    except service.UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "User deleted successfully"}


@roles_router.get("", response_model=List[RoleOut])
def get_roles(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("user_list")),
):
    return [
        {
            "id": role.id,
            "name": role.name,
            "status": role.status,
            "permissions": sorted(p.name for p in role.permissions),
        }
        for role in list_roles(db)
    ]
