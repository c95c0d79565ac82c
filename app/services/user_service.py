"""
User management: listing, creation with a temporary password, updates,
status toggling and soft deletion.
"""
import logging
import math
import secrets
import string
from datetime import datetime
from typing import Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.core.security import hash_password
from app.db.models.department import Department
from app.db.models.role import Role
from app.db.models.user import User
from app.schemas.user import UserCreate, UserUpdate
from app.services.role_service import get_role, get_user_permissions, is_admin, PERMISSIONS

logger = logging.getLogger(__name__)

TEMP_PASSWORD_LENGTH = 10

ALLOWED_SORTS = {
    "id": User.id,
    "first_name": User.first_name,
    "last_name": User.last_name,
    "email": User.email,
    "phone_no": User.phone_no,
    "status": User.status,
    "created_at": User.created_at,
}

SEARCHABLE_COLUMNS = {
    "first_name": User.first_name,
    "last_name": User.last_name,
    "email": User.email,
    "phone_no": User.phone_no,
    "role_name": Role.name,
}


class UserNotFoundError(Exception):
    pass


class DuplicateEmailError(ValueError):
    pass


class InvalidReferenceError(ValueError):
    """Unknown role or department id."""


def generate_temp_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def to_dict(user: User) -> Dict:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "phone_no": user.phone_no,
        "status": user.status,
        "role_id": user.role_id,
        "role_name": user.role.name if user.role else None,
        "department_id": user.department_id,
        "department_name": user.department.name if user.department else None,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def profile(user: User) -> Dict:
    """User details plus the effective permission names."""
    permissions = PERMISSIONS if is_admin(user) else sorted(get_user_permissions(user))
    return {**to_dict(user), "permissions": list(permissions)}


def _live_query(db: Session):
    return (
        db.query(User)
        .outerjoin(Role, User.role_id == Role.id)
        .options(joinedload(User.role), joinedload(User.department))
        .filter(User.deleted_at.is_(None))
    )


def list_users(
    db: Session,
    search: Optional[str] = None,
    column: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: Optional[str] = None,
    sort_order: str = "desc",
) -> Dict:
    page = max(1, page)
    limit = max(1, min(limit, 100))

    query = _live_query(db)
    if search and column in SEARCHABLE_COLUMNS:
        query = query.filter(SEARCHABLE_COLUMNS[column].ilike(f"%{search}%"))
    if status:
        query = query.filter(func.lower(User.status) == status.lower())

    total = query.count()

    sort_column = ALLOWED_SORTS.get(sort_by or "", User.created_at)
    ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()
    rows = query.order_by(ordering, User.id.desc()).offset((page - 1) * limit).limit(limit).all()

    return {
        "users": [to_dict(row) for row in rows],
        "total": total,
        "total_pages": max(1, math.ceil(total / limit)),
        "current_page": page,
    }


def get_user(db: Session, user_id: int) -> User:
    user = _live_query(db).filter(User.id == user_id).first()
    if not user:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


def _ensure_unique_email(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(User.id).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise DuplicateEmailError(f"User with email {email} already exists")


def _ensure_references(db: Session, role_id: Optional[int], department_id: Optional[int]) -> None:
    if role_id is not None and get_role(db, role_id) is None:
        raise InvalidReferenceError(f"Role {role_id} not found")
    if department_id is not None:
        exists = db.query(Department.id).filter(
            Department.id == department_id,
            Department.deleted_at.is_(None),
        ).first()
        if not exists:
            raise InvalidReferenceError(f"Department {department_id} not found")


def create_user(db: Session, data: UserCreate) -> Tuple[User, str]:
    """
    Create a user with a random temporary password.

    Returns:
        The new user and the plaintext temporary password for delivery
    """
    _ensure_unique_email(db, data.email)
    _ensure_references(db, data.role_id, data.department_id)

    temp_password = generate_temp_password()
    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email.lower(),
        phone_no=data.phone_no,
        status=data.status,
        role_id=data.role_id,
        department_id=data.department_id,
        password_hash=hash_password(temp_password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"User created: id={user.id}, role_id={user.role_id}")
    return user, temp_password


def update_user(db: Session, user_id: int, data: UserUpdate) -> User:
    user = get_user(db, user_id)
    _ensure_unique_email(db, data.email, exclude_id=user_id)
    _ensure_references(db, data.role_id, data.department_id)

    user.first_name = data.first_name
    user.last_name = data.last_name
    user.email = data.email.lower()
    user.phone_no = data.phone_no
    user.role_id = data.role_id
    user.department_id = data.department_id
    user.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(user)
    logger.info(f"User updated: id={user.id}")
    return user


def update_user_status(db: Session, user_id: int, status: str) -> User:
    user = get_user(db, user_id)
    user.status = status
    user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(user)
    logger.info(f"User status changed: id={user.id}, status={status}")
    return user


def delete_user(db: Session, user_id: int) -> None:
    """Soft delete: the user can no longer log in and drops out of listings."""
    user = get_user(db, user_id)
    now = datetime.utcnow()
    user.deleted_at = now
    user.status = "Inactive"
    user.updated_at = now
    db.commit()
    logger.info(f"User soft-deleted: id={user_id}")
