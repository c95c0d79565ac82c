import logging

from app.db.session import engine, SessionLocal
from app.db.base import Base
import app.db.models  # noqa: F401  (registers all tables)

logger = logging.getLogger(__name__)


def init_db():
    """Create any missing tables. Alembic stays the source of truth in production."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


def seed_defaults():
    """Ensure the default roles and permission grants exist."""
    from app.services.role_service import seed_roles_and_permissions

    db = SessionLocal()
    try:
        seed_roles_and_permissions(db)
        logger.info("Default roles and permissions ensured")
    finally:
        db.close()
