import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_permission
from app.db.models.user import User
from app.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionUpdate,
    SubscriptionOut,
    SubscriptionListResponse,
    DepartmentCreate,
    DepartmentOut,
)
from app.services import subscription_service as service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])
departments_router = APIRouter(prefix="/departments", tags=["Departments"])


@router.get("", response_model=SubscriptionListResponse)
def list_subscriptions(
    search: Optional[str] = None,
    column: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Optional[str] = None,
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("subscription_list")),
):
    return service.list_subscriptions(
        db,
        search=search,
        column=column,
        status=status_filter,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/export")
def export_subscriptions(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("subscription_list")),
):
    content = service.export_subscriptions_csv(db)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=subscriptions.csv"},
    )


@router.get("/{subscription_id}", response_model=SubscriptionOut)
def get_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("subscription_list")),
):
    try:
        return service.to_dict(service.get_subscription(db, subscription_id))
    except service.SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=SubscriptionOut, status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: SubscriptionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("subscription_add")),
):
    try:
        subscription = service.create_subscription(db, payload, actor_id=user.id)
    except service.DuplicateNameError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except service.DepartmentNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return service.to_dict(subscription)


@router.put("/{subscription_id}", response_model=SubscriptionOut)
def update_subscription(
    subscription_id: int,
    payload: SubscriptionUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("subscription_edit")),
):
    try:
        subscription = service.update_subscription(db, subscription_id, payload, actor_id=user.id)
    except service.SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except service.DuplicateNameError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except service.DepartmentNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return service.to_dict(subscription)


@router.delete("/{subscription_id}")
def delete_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("subscription_delete")),
):
    try:
        service.delete_subscription(db, subscription_id, actor_id=user.id)
    except service.SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "Subscription deleted successfully"}


@departments_router.get("", response_model=List[DepartmentOut])
def list_departments(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("subscription_list")),
):
    return service.list_departments(db)


@departments_router.post("", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
def create_department(
    payload: DepartmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("department_add")),
):
    try:
        return service.create_department(db, payload.name)
    except service.DuplicateNameError as e:
        raise HTTPException(status_code=409, detail=str(e))
