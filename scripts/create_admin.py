"""
Seed the first admin user (admin role, and optionally a department).
Run: python -m scripts.create_admin admin@example.com 'StrongPass123' --first-name Admin
"""
import argparse
import logging
import sys

from app.db.session import SessionLocal
from app.db.init_db import init_db
from app.db.models.department import Department
from app.db.models.user import User
from app.core.security import hash_password
from app.services.role_service import ADMIN_ROLE, get_role_by_name, seed_roles_and_permissions

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_admin(email: str, password: str, first_name: str = "Admin", last_name: str = "User",
                 department: str = None) -> bool:
    """Create the user if missing; returns False when it already exists."""
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email.lower()).first()
        if existing:
            logger.info(f"User already exists: {email} (ID: {existing.id})")
            return False

        seed_roles_and_permissions(db)
        admin_role = get_role_by_name(db, ADMIN_ROLE)

        department_id = None
        if department:
            dept = db.query(Department).filter(Department.name == department).first()
            if not dept:
                dept = Department(name=department, status="Active")
                db.add(dept)
                db.flush()
                logger.info(f"Created department: {department}")
            department_id = dept.id

        user = User(
            email=email.lower(),
            first_name=first_name,
            last_name=last_name,
            password_hash=hash_password(password),
            status="Active",
            department_id=department_id,
            role_id=admin_role.id,
        )
        db.add(user)
        db.commit()
        logger.info(f"Created admin user with ID: {user.id}")
        return True
    except Exception:
        db.rollback()
        logger.error(f"Error creating admin {email}", exc_info=True)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the first admin user")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    parser.add_argument("--department")
    args = parser.parse_args()

    init_db()
    try:
        created = create_admin(args.email, args.password, args.first_name, args.last_name, args.department)
    except Exception:
        sys.exit(1)

    print(f"\n[SUCCESS] Admin {args.email} created" if created else f"\n[INFO] {args.email} already exists")
