"""
Subscription and department CRUD for the admin panel.

Status is never taken from the client: it is derived from the renewal date
on every create and update, the same rule the periodic reconciliation uses.
"""
import csv
import io
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.core.dates import local_today
from app.db.models.department import Department
from app.db.models.subscription import Subscription, SubscriptionStatus
from app.schemas.subscription import SubscriptionCreate, SubscriptionUpdate
from app.services.status_service import derive_status

logger = logging.getLogger(__name__)

ALLOWED_SORTS = {
    "id": Subscription.id,
    "name": Subscription.name,
    "billing_type": Subscription.billing_type,
    "price": Subscription.price,
    "currency": Subscription.currency,
    "renewal_date": Subscription.renewal_date,
    "department_name": Department.name,
    "created_at": Subscription.created_at,
}

SEARCHABLE_COLUMNS = {
    "name": Subscription.name,
    "billing_type": Subscription.billing_type,
    "currency": Subscription.currency,
    "department_name": Department.name,
}


class SubscriptionNotFoundError(Exception):
    pass


class DuplicateNameError(ValueError):
    pass


class DepartmentNotFoundError(ValueError):
    pass


def to_dict(subscription: Subscription) -> Dict:
    return {
        "id": subscription.id,
        "name": subscription.name,
        "price": subscription.price,
        "billing_type": subscription.billing_type,
        "currency": subscription.currency,
        "renewal_date": subscription.renewal_date,
        "portal_detail": subscription.portal_detail,
        "status": subscription.status,
        "department_id": subscription.department_id,
        "department_name": subscription.department.name if subscription.department else None,
        "created_at": subscription.created_at,
        "updated_at": subscription.updated_at,
    }


def _live_query(db: Session):
    return (
        db.query(Subscription)
        .outerjoin(Department, Subscription.department_id == Department.id)
        .options(joinedload(Subscription.department))
        .filter(Subscription.deleted_at.is_(None))
    )


def list_subscriptions(
    db: Session,
    search: Optional[str] = None,
    column: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: Optional[str] = None,
    sort_order: str = "desc",
) -> Dict:
    """
    Paginated live subscriptions with optional search, status filter and sort.

    Returns:
        Dictionary with subscriptions, total, total_pages, current_page
    """
    page = max(1, page)
    limit = max(1, min(limit, 100))

    query = _live_query(db)
    if search and column in SEARCHABLE_COLUMNS:
        query = query.filter(SEARCHABLE_COLUMNS[column].ilike(f"%{search}%"))
    if status:
        query = query.filter(func.lower(Subscription.status) == status.lower())

    total = query.count()

    sort_column = ALLOWED_SORTS.get(sort_by or "", Subscription.created_at)
    ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()
    rows = query.order_by(ordering, Subscription.id.desc()).offset((page - 1) * limit).limit(limit).all()

    return {
        "subscriptions": [to_dict(row) for row in rows],
        "total": total,
        "total_pages": max(1, math.ceil(total / limit)),
        "current_page": page,
    }


def get_subscription(db: Session, subscription_id: int) -> Subscription:
    subscription = _live_query(db).filter(Subscription.id == subscription_id).first()
    if not subscription:
        raise SubscriptionNotFoundError(f"Subscription {subscription_id} not found")
    return subscription


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Subscription.id).filter(
        func.lower(Subscription.name) == name.lower(),
        Subscription.deleted_at.is_(None),
    )
    if exclude_id is not None:
        query = query.filter(Subscription.id != exclude_id)
    if query.first():
        raise DuplicateNameError(f"Subscription '{name}' already exists")


def _ensure_department(db: Session, department_id: Optional[int]) -> None:
    if department_id is None:
        return
    exists = db.query(Department.id).filter(
        Department.id == department_id,
        Department.deleted_at.is_(None),
    ).first()
    if not exists:
        raise DepartmentNotFoundError(f"Department {department_id} not found")


def create_subscription(db: Session, data: SubscriptionCreate, actor_id: Optional[int] = None) -> Subscription:
    _ensure_unique_name(db, data.name)
    _ensure_department(db, data.department_id)

    subscription = Subscription(
        name=data.name,
        price=data.price,
        billing_type=data.billing_type.value,
        currency=data.currency.value,
        renewal_date=data.renewal_date,
        portal_detail=data.portal_detail,
        status=derive_status(data.renewal_date, local_today()).value,
        department_id=data.department_id,
        updated_by=actor_id,
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)

    logger.info(f"Subscription created: id={subscription.id}, name={subscription.name}, status={subscription.status}")
    return subscription


def update_subscription(
    db: Session,
    subscription_id: int,
    data: SubscriptionUpdate,
    actor_id: Optional[int] = None,
) -> Subscription:
    subscription = get_subscription(db, subscription_id)
    _ensure_unique_name(db, data.name, exclude_id=subscription_id)
    _ensure_department(db, data.department_id)

    subscription.name = data.name
    subscription.price = data.price
    subscription.billing_type = data.billing_type.value
    subscription.currency = data.currency.value
    subscription.renewal_date = data.renewal_date
    subscription.portal_detail = data.portal_detail
    subscription.department_id = data.department_id
    subscription.status = derive_status(data.renewal_date, local_today()).value
    subscription.updated_at = datetime.utcnow()
    subscription.updated_by = actor_id

    db.commit()
    db.refresh(subscription)

    logger.info(f"Subscription updated: id={subscription.id}, status={subscription.status}")
    return subscription


def delete_subscription(db: Session, subscription_id: int, actor_id: int) -> None:
    """Soft delete: the row stays but drops out of every scan and listing."""
    subscription = get_subscription(db, subscription_id)
    now = datetime.utcnow()
    subscription.deleted_at = now
    subscription.deleted_by = actor_id
    subscription.status = SubscriptionStatus.INACTIVE.value
    subscription.updated_at = now
    db.commit()

    logger.info(f"Subscription soft-deleted: id={subscription_id}, by user_id={actor_id}")


def export_subscriptions_csv(db: Session) -> str:
    rows = _live_query(db).order_by(Subscription.id).all()

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(["ID", "Name", "Type", "Price", "Currency", "Renew Date", "Department", "Status"])
    for s in rows:
        writer.writerow([
            s.id,
            s.name,
            s.billing_type,
            s.price,
            s.currency,
            s.renewal_date.isoformat() if s.renewal_date else "-",
            s.department.name if s.department else "-",
            s.status,
        ])
    return buffer.getvalue()


def list_departments(db: Session) -> List[Department]:
    return (
        db.query(Department)
        .filter(Department.deleted_at.is_(None))
        .order_by(Department.name)
        .all()
    )


def create_department(db: Session, name: str) -> Department:
    name = name.strip()
    existing = db.query(Department.id).filter(func.lower(Department.name) == name.lower()).first()
    if existing:
        raise DuplicateNameError(f"Department '{name}' already exists")

    department = Department(name=name, status="Active")
    db.add(department)
    db.commit()
    db.refresh(department)
    return department
