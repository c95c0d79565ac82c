"""
Health check endpoint for deployment monitoring.
"""
from datetime import datetime

from fastapi import APIRouter
from sqlalchemy import text

from app.db.session import SessionLocal
from app.jobs.scheduler import scheduler

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check():
    """
    Returns 200 with database and scheduler state.
    """
    status = "healthy"

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {str(e)}"
        status = "degraded"

    return {
        "status": status,
        "timestamp": datetime.utcnow().isoformat(),
        "database": db_status,
        "scheduler": "running" if scheduler.running else "stopped",
        "jobs": [job.id for job in scheduler.get_jobs()],
        "version": "1.0.0",
    }
