"""
Roles and permissions.

Users carry at most one role; a role grants a set of named permissions.
The admin role bypasses permission checks entirely.
"""
import logging
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session

from app.db.models.role import Permission, Role
from app.db.models.user import User

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
USER_ROLE = "user"

PERMISSIONS = [
    "user_list",
    "user_add",
    "user_edit",
    "user_delete",
    "subscription_list",
    "subscription_add",
    "subscription_edit",
    "subscription_delete",
    "department_add",
    "currency_update",
    "job_run",
]

DEFAULT_ROLE_PERMISSIONS: Dict[str, List[str]] = {
    ADMIN_ROLE: PERMISSIONS,
    USER_ROLE: ["user_list"],
}


def seed_roles_and_permissions(db: Session) -> None:
    """Insert missing permissions, roles and default grants. Safe to run repeatedly."""
    existing = {p.name: p for p in db.query(Permission).all()}
    for name in PERMISSIONS:
        if name not in existing:
            existing[name] = Permission(name=name, status="active")
            db.add(existing[name])

    for role_name, granted in DEFAULT_ROLE_PERMISSIONS.items():
        role = db.query(Role).filter(Role.name == role_name).first()
        if role is None:
            role = Role(name=role_name, status="Active")
            db.add(role)
            logger.info(f"Created role: {role_name}")
        for name in granted:
            if existing[name] not in role.permissions:
                role.permissions.append(existing[name])

    db.commit()


def get_role(db: Session, role_id: int) -> Optional[Role]:
    return db.query(Role).filter(Role.id == role_id, Role.deleted_at.is_(None)).first()


def get_role_by_name(db: Session, name: str) -> Optional[Role]:
    return db.query(Role).filter(Role.name == name, Role.deleted_at.is_(None)).first()


def list_roles(db: Session) -> List[Role]:
    return db.query(Role).filter(Role.deleted_at.is_(None)).order_by(Role.name).all()


def is_admin(user: User) -> bool:
    return bool(user.role and (user.role.name or "").lower() == ADMIN_ROLE)


def get_user_permissions(user: User) -> Set[str]:
    """Active permission names granted through the user's role."""
    if not user.role or (user.role.status or "").lower() != "active":
        return set()
    return {p.name for p in user.role.permissions if (p.status or "").lower() == "active"}


def has_permission(user: User, permission: str) -> bool:
    if is_admin(user):
        return True
    return permission in get_user_permissions(user)
